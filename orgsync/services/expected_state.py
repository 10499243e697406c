"""
Expected-state resolution for orgsync.

Turns the desired-state document into the flat list of repositories that
should be checked out for one organization, including their alias history.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..definition import DefinitionRepoRecord, get_repos
from ..domain.repository import Alias, ExpectedRepo, RemoteRepo

logger = logging.getLogger(__name__)

RemoteLister = Callable[[str], List[RemoteRepo]]


def build_aliases(repo: Dict[str, Any]) -> tuple:
    """Aliases from a repository's declared previous identities, in order."""
    return tuple(
        Alias(group=previous['project'], name=previous['name'])
        for previous in repo.get('previousNames') or []
    )


class ExpectedStateResolver:
    """
    Resolves ExpectedRepo records for an organization.

    Example:
        resolver = ExpectedStateResolver(rootdir, github.list_org_repos, reporter)
        expected = resolver.resolve(definition, "my-org", tags=("team-a",))
    """

    def __init__(
        self,
        rootdir: Path,
        remote_lister: Optional[RemoteLister] = None,
        reporter=None,
    ):
        """
        Initialize ExpectedStateResolver.

        Args:
            rootdir: Root of the synchronized working directory
            remote_lister: Lists remote repositories of an organization;
                None trusts the document without checking the remote
            reporter: Receives warnings about repositories missing remotely
        """
        self.rootdir = Path(rootdir)
        self.remote_lister = remote_lister
        self.reporter = reporter
        self._remote_names: Dict[str, set] = {}

    def _get_remote_names(self, org: str) -> Optional[set]:
        if self.remote_lister is None:
            return None
        if org not in self._remote_names:
            self._remote_names[org] = {repo.name for repo in self.remote_lister(org)}
        return self._remote_names[org]

    def _exists_on_disk(self, relpaths: Sequence[str]) -> bool:
        return any((self.rootdir / relpath).exists() for relpath in relpaths)

    def _matches_tags(self, record: DefinitionRepoRecord, tags: Optional[Sequence[str]]) -> bool:
        if tags is None:
            return True
        return any(tag in tags for tag in record.project_tags)

    def resolve(
        self,
        definition: Dict[str, Any],
        org: str,
        tags: Optional[Sequence[str]] = None,
    ) -> List[ExpectedRepo]:
        """
        Resolve the expected repositories.

        A repository outside the tag filter is still kept when it already
        exists on disk, under its canonical path or one of its aliases, so
        changing the filter never turns checkouts into unknown directories.

        Args:
            definition: Parsed desired-state document
            org: Organization to sync
            tags: Optional project tag filter

        Returns:
            List of ExpectedRepo in document order
        """
        remote_names = self._get_remote_names(org)
        expected: List[ExpectedRepo] = []

        for record in get_repos(definition):
            if record.org != org:
                continue

            repo = ExpectedRepo(
                org=record.org,
                group=record.project_name,
                name=record.repo['name'],
                archived=bool(record.repo.get('archived', False)),
                aliases=build_aliases(record.repo),
            )

            if not self._matches_tags(record, tags):
                if not self._exists_on_disk((repo.relpath, *repo.alias_relpaths)):
                    continue
                logger.debug(f"Keeping {repo.id} outside tag filter as it is checked out")

            if remote_names is not None and repo.name not in remote_names:
                if self.reporter is not None:
                    self.reporter.warn(f"Repo not found in GitHub - ignoring: {repo.name}")
                continue

            expected.append(repo)

        return expected
