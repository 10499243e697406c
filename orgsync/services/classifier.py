"""
Directory classification for orgsync.

Walks the two-level `rootdir/<group>/<repo>` tree and partitions it
against the expected repositories:

- found: directories matching a repository's canonical path or an alias
- unknown: directories matching nothing (reported, never deleted)
- moved: found under an alias instead of the canonical path
- missing: expected, not archived, and not found at all
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Sequence

from ..domain.repository import ActualRepo, ExpectedRepo
from ..infra.git_client import GitRepo

HIDDEN_PREFIX = "."
CONTROL_MARKER = ".git"

GitRepoFactory = Callable[[str], GitRepo]


@dataclass
class Classification:
    """Result of classifying the local tree."""
    found: List[ActualRepo] = field(default_factory=list)
    unknown_dirs: List[str] = field(default_factory=list)
    missing: List[ExpectedRepo] = field(default_factory=list)

    @property
    def moved(self) -> List[ActualRepo]:
        return [repo for repo in self.found if repo.is_moved]

    @property
    def archived(self) -> List[ActualRepo]:
        return [repo for repo in self.found if repo.archived]

    def summary(self) -> Dict[str, List[str]]:
        """Relpath sets, convenient for comparisons and JSON output."""
        return {
            'found': [repo.actual_relpath for repo in self.found],
            'unknown': list(self.unknown_dirs),
            'moved': [f"{repo.actual_relpath} -> {repo.expected.relpath}" for repo in self.moved],
            'missing': [repo.relpath for repo in self.missing],
        }


def get_dir_names(parent: Path) -> List[str]:
    """Non-hidden subdirectory names, sorted."""
    return sorted(
        entry.name
        for entry in os.scandir(parent)
        if entry.is_dir() and not entry.name.startswith(HIDDEN_PREFIX)
    )


def build_relpath_index(expected: Sequence[ExpectedRepo]) -> Dict[str, ExpectedRepo]:
    """
    Map canonical and alias relpaths to their repository.

    Canonical paths are indexed first so an alias can never shadow
    another repository's current location.
    """
    index: Dict[str, ExpectedRepo] = {}
    for repo in expected:
        index[repo.relpath] = repo
    for repo in expected:
        for alias_relpath in repo.alias_relpaths:
            index.setdefault(alias_relpath, repo)
    return index


def classify(
    rootdir: Path,
    expected: Sequence[ExpectedRepo],
    git_factory: GitRepoFactory,
) -> Classification:
    """
    Classify the directory tree under rootdir.

    Args:
        rootdir: Root of the synchronized working directory
        expected: Expected repositories for this run
        git_factory: Builds the GitRepo bound to a found relpath

    Returns:
        Classification of every candidate directory
    """
    rootdir = Path(rootdir)
    index = build_relpath_index(expected)
    result = Classification()
    found_ids = set()

    for topdir in get_dir_names(rootdir):
        # A checkout directly under rootdir is not a group; never descend.
        if (rootdir / topdir / CONTROL_MARKER).exists():
            result.unknown_dirs.append(topdir)
            continue

        for subdir in get_dir_names(rootdir / topdir):
            relpath = f"{topdir}/{subdir}"
            repo = index.get(relpath)
            if repo is None:
                result.unknown_dirs.append(relpath)
                continue

            result.found.append(ActualRepo(
                expected=repo,
                actual_relpath=relpath,
                git=git_factory(relpath),
            ))
            found_ids.add(repo.id)

    result.missing = [
        repo for repo in expected
        if not repo.archived and repo.id not in found_ids
    ]
    return result
