"""
Repository domain objects for orgsync.

Expected repositories are resolved fresh on every run from the
desired-state document; actual repositories are the subset of those
found on disk. Everything here is immutable for the duration of a run.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from ..infra.git_client import GitRepo


def make_relpath(group: str, name: str) -> str:
    """Relative path of a checkout under the root directory."""
    return f"{group}/{name}"


@dataclass(frozen=True)
class Alias:
    """A (group, name) pair that previously identified a repository."""
    group: str
    name: str

    @property
    def relpath(self) -> str:
        return make_relpath(self.group, self.name)


@dataclass(frozen=True)
class ExpectedRepo:
    """A repository the desired state says should be checked out."""
    org: str
    group: str
    name: str
    archived: bool = False
    aliases: Tuple[Alias, ...] = ()

    @property
    def id(self) -> str:
        return make_relpath(self.group, self.name)

    @property
    def relpath(self) -> str:
        return self.id

    @property
    def alias_relpaths(self) -> Tuple[str, ...]:
        return tuple(alias.relpath for alias in self.aliases)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'org': self.org,
            'group': self.group,
            'name': self.name,
            'archived': self.archived,
            'aliases': [{'group': a.group, 'name': a.name} for a in self.aliases],
        }


@dataclass(frozen=True)
class ActualRepo:
    """An expected repository together with where it was found on disk."""
    expected: ExpectedRepo
    actual_relpath: str
    git: 'GitRepo' = field(compare=False, repr=False)

    @property
    def id(self) -> str:
        return self.expected.id

    @property
    def org(self) -> str:
        return self.expected.org

    @property
    def name(self) -> str:
        return self.expected.name

    @property
    def archived(self) -> bool:
        return self.expected.archived

    @property
    def is_moved(self) -> bool:
        """Found under an alias instead of its canonical path."""
        return self.actual_relpath != self.expected.relpath


@dataclass(frozen=True)
class UpdateRange:
    """Revisions a fast-forward pull moved the branch between."""
    from_rev: str
    to_rev: str


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of one update attempt. Never both dirty and updated."""
    dirty: bool
    updated: bool
    updated_range: Optional[UpdateRange] = None

    def __post_init__(self):
        if self.dirty and self.updated:
            raise ValueError("An update result cannot be both dirty and updated")

    @classmethod
    def fetched_only(cls) -> 'UpdateResult':
        return cls(dirty=True, updated=False)


@dataclass(frozen=True)
class RepoWithUpdateResult:
    """A found repository joined with its successful update result."""
    repo: ActualRepo
    result: UpdateResult


@dataclass(frozen=True)
class Author:
    """Commit author with number of commits in a range."""
    name: str
    count: int


@dataclass(frozen=True)
class RemoteRepo:
    """Repository as listed by the remote hosting service."""
    name: str
    archived: bool = False
