"""
Reconciliation driver for orgsync.

Sequences one sync run of the working directory against the desired state:

1. Bootstrap: if the desired-state document lives in a checked-out
   repository, update that repository first and resolve again.
2. Classify the tree against the fresh expected state.
3. Report unknown directories and archived checkouts.
4. Report (and optionally move) repositories found under an alias.
5. Report (and optionally clone) missing repositories.
6. Update every found repository in parallel and report what changed.
7. Report dirty repositories, then repositories with unpushed commits.

Local work is never discarded: dirty and off-branch checkouts are only
fetched, and moves refuse to overwrite anything.
"""

import asyncio
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..config import get_default_config
from ..definition import DefinitionFile
from ..domain.repository import ActualRepo, ExpectedRepo, RepoWithUpdateResult
from ..exit_codes import MoveConflictError
from ..infra.audit_log import AuditLog
from ..infra.git_client import GitCommandError, GitRepo, get_compare_link
from ..manifest import Manifest
from ..prompts import LineReader, MoveChoice, ask_clone_choice, ask_move_choice
from ..render import is_robot_only, render_compare_line, render_updated_line
from .classifier import Classification, classify
from .expected_state import ExpectedStateResolver
from .update_service import DEFAULT_CONCURRENCY, UpdateOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_BOT_PATTERNS = tuple(get_default_config()["report"]["bot_patterns"])


@dataclass
class SyncOptions:
    """Options for one sync run."""
    ask_clone: bool = False
    ask_move: bool = False
    concurrency: int = DEFAULT_CONCURRENCY
    main_branch: str = "master"
    host: str = "github.com"
    log_file: str = ".orgsync.log"
    clone_timeout: Optional[float] = 60
    bot_patterns: Tuple[str, ...] = DEFAULT_BOT_PATTERNS

    @staticmethod
    def _patterns(value) -> Tuple[str, ...]:
        if isinstance(value, str):
            return (value,)
        return tuple(str(pattern) for pattern in value)

    @classmethod
    def from_config(cls, config: Dict, **overrides) -> 'SyncOptions':
        general = config.get("general", {})
        options = cls(
            concurrency=int(general.get("max_concurrent_operations", DEFAULT_CONCURRENCY)),
            main_branch=str(general.get("main_branch", "master")),
            log_file=general.get("log_file", ".orgsync.log"),
            host=config.get("github", {}).get("host", "github.com"),
            clone_timeout=config.get("prompts", {}).get("clone_timeout_seconds", 60) or None,
            bot_patterns=cls._patterns(config.get("report", {}).get("bot_patterns", DEFAULT_BOT_PATTERNS)),
        )
        for key, value in overrides.items():
            setattr(options, key, value)
        return options


@dataclass
class SyncOutcome:
    """What one sync run found and did."""
    classification: Optional[Classification] = None
    bootstrap_relpath: Optional[str] = None
    moved: List[ActualRepo] = field(default_factory=list)
    cloned: List[ExpectedRepo] = field(default_factory=list)
    updated: List[RepoWithUpdateResult] = field(default_factory=list)
    dirty: List[ActualRepo] = field(default_factory=list)
    unpushed: List[ActualRepo] = field(default_factory=list)
    rerun_required: bool = False


class SyncService:
    """
    Drives a full reconciliation run.

    Example:
        service = SyncService(manifest, resolver, reporter, ClickLineReader(), options)
        outcome = asyncio.run(service.run())
        if outcome.rerun_required:
            print("Run again")
    """

    def __init__(
        self,
        manifest: Manifest,
        resolver: ExpectedStateResolver,
        reporter,
        line_reader: LineReader,
        options: Optional[SyncOptions] = None,
        audit_log: Optional[AuditLog] = None,
        definition_loader: Optional[Callable[[], Dict]] = None,
    ):
        """
        Initialize SyncService.

        Args:
            manifest: Loaded manifest; its directory is the root directory
            resolver: Resolves expected repositories from the definition
            reporter: Report output channels
            line_reader: Answers the interactive confirmation prompts
            options: Run options (defaults when None)
            audit_log: Command audit log (defaults to <rootdir>/<log_file>)
            definition_loader: Loads the desired-state document (defaults to
                reading the manifest's definition path)
        """
        self.manifest = manifest
        self.rootdir = manifest.rootdir
        self.resolver = resolver
        self.reporter = reporter
        self.line_reader = line_reader
        self.options = options or SyncOptions()
        self.audit_log = audit_log or AuditLog(self.rootdir / self.options.log_file)
        self.definition_loader = definition_loader or DefinitionFile(
            manifest.resolved_definition_path
        ).get_definition
        self.orchestrator = UpdateOrchestrator(reporter, self.options.concurrency)

    def git_repo(self, relpath: str) -> GitRepo:
        return GitRepo(
            self.rootdir / relpath,
            self.audit_log.sink(relpath),
            main_branch=self.options.main_branch,
            host=self.options.host,
        )

    def resolve_expected(self) -> List[ExpectedRepo]:
        return self.resolver.resolve(
            self.definition_loader(),
            self.manifest.github_organization,
            self.manifest.tags,
        )

    def classify(self, expected: Sequence[ExpectedRepo]) -> Classification:
        return classify(self.rootdir, expected, self.git_repo)

    def find_definition_repo(self, found: Sequence[ActualRepo]) -> Optional[ActualRepo]:
        """The found checkout containing the desired-state document, if any."""
        definition_path = self.manifest.resolved_definition_path
        for repo in found:
            if definition_path.is_relative_to((self.rootdir / repo.actual_relpath).resolve()):
                return repo
        return None

    async def run(self) -> SyncOutcome:
        outcome = SyncOutcome()

        # Phase 1: the definition may be stale until its own repo is pulled.
        classification = self.classify(await asyncio.to_thread(self.resolve_expected))
        bootstrap_results: List[RepoWithUpdateResult] = []
        definition_repo = self.find_definition_repo(classification.found)
        if definition_repo is not None:
            outcome.bootstrap_relpath = definition_repo.actual_relpath
            logger.debug(f"Definition {self.manifest.resolved_definition_path} is inside {definition_repo.actual_relpath}")
            self.reporter.info(f"Updating definition repo {definition_repo.actual_relpath} first")
            bootstrap_results = await self.orchestrator.update_repos([definition_repo])
            classification = self.classify(await asyncio.to_thread(self.resolve_expected))

        # Phase 2: everything else works on the current expected state.
        outcome.classification = classification

        self.report_unknown(classification.unknown_dirs)
        self.report_archived(classification.archived)

        if classification.moved:
            outcome.moved = await self.handle_moved(classification.moved)
            if outcome.moved:
                outcome.rerun_required = True
                self.reporter.info(
                    f"Moved {len(outcome.moved)} repos - run sync again to continue"
                )
                return outcome

        if classification.missing:
            outcome.cloned = await self.handle_missing(classification.missing)

        to_update = [
            repo for repo in classification.found
            if repo.actual_relpath != outcome.bootstrap_relpath
        ]
        self.reporter.info(f"{len(to_update)} repos identified to be updated")
        results = bootstrap_results + await self.orchestrator.update_repos(to_update)

        for item in results:
            if item.result.dirty:
                outcome.dirty.append(item.repo)
            if item.result.updated:
                outcome.updated.append(item)
                await self.report_updated(item)

        # Dirty at the end, as the user needs to act on these.
        for repo in outcome.dirty:
            self.reporter.warn(f"Dirty path: {repo.actual_relpath} - handle manually")

        outcome.unpushed = await self.orchestrator.find_unpushed(classification.found)
        for repo in outcome.unpushed:
            self.reporter.warn(f"Unpushed commits: {repo.actual_relpath} - push manually")

        return outcome

    def report_unknown(self, unknown_dirs: Sequence[str]) -> None:
        if not unknown_dirs:
            return
        self.reporter.warn("Directories not mapped - maybe renamed?")
        for relpath in unknown_dirs:
            self.reporter.warn(f"  {relpath}")

    def archive_dir(self) -> Path:
        return self.rootdir.parent / f"{self.rootdir.name}-archive"

    def report_archived(self, archived: Sequence[ActualRepo]) -> None:
        if not archived:
            return
        self.reporter.info("Archived repos:")
        for repo in archived:
            self.reporter.info(f"  {repo.actual_relpath}")

        archive_dir = self.archive_dir()
        if archive_dir.is_dir():
            self.reporter.info("To move these:")
            for repo in archived:
                self.reporter.info(
                    f"  mkdir -p {archive_dir / repo.expected.group} && "
                    f"mv {repo.actual_relpath} {archive_dir / repo.expected.group}/"
                )

    async def handle_moved(self, moved: Sequence[ActualRepo]) -> List[ActualRepo]:
        """Report renamed checkouts; move them when confirmed. Returns moved repos."""
        self.reporter.info("Repositories found under a previous name:")
        for repo in moved:
            self.reporter.info(f"  {repo.actual_relpath} -> {repo.expected.relpath}")

        if not self.options.ask_move:
            self.reporter.info("To move these repos add --ask-move option for dialog")
            return []

        if await ask_move_choice(self.line_reader) != MoveChoice.ACCEPT:
            return []

        self.move_repos(moved)
        return list(moved)

    def move_repos(self, moved: Sequence[ActualRepo]) -> None:
        """Move checkouts to their canonical path, all or nothing up front."""
        destinations = set()
        for repo in moved:
            destination = self.rootdir / repo.expected.relpath
            if destination.exists() or destination in destinations:
                raise MoveConflictError(repo.actual_relpath, repo.expected.relpath)
            destinations.add(destination)

        for repo in moved:
            source = self.rootdir / repo.actual_relpath
            destination = self.rootdir / repo.expected.relpath
            self.reporter.info(f"Moving {repo.actual_relpath} -> {repo.expected.relpath}")
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(destination))
            logger.debug(f"Moved {source} to {destination}")

    async def handle_missing(self, missing: Sequence[ExpectedRepo]) -> List[ExpectedRepo]:
        """Report missing repositories; clone them when confirmed."""
        self.reporter.info("Repositories not cloned:")
        for repo in missing:
            self.reporter.info(f"  {repo.relpath}")

        if not self.options.ask_clone:
            self.reporter.info("To clone these repos add --ask-clone option for dialog")
            return []

        self.reporter.info(
            "You must already have working credentials for GitHub set up for clone to work"
        )
        choice = await ask_clone_choice(self.line_reader, self.options.clone_timeout)
        if choice.protocol is None:
            return []

        # Sequential on purpose: a failed clone aborts the run.
        cloned = []
        for repo in missing:
            self.reporter.info(f"Cloning {repo.relpath}")
            await self.git_repo(repo.relpath).clone_from(repo.org, repo.name, choice.protocol)
            cloned.append(repo)
        return cloned

    async def report_updated(self, item: RepoWithUpdateResult) -> None:
        repo, update_range = item.repo, item.result.updated_range
        try:
            authors = await repo.git.get_authors_for_range(update_range)
        except GitCommandError as e:
            self.reporter.warn(f"Could not list authors for {repo.actual_relpath}: {e}")
            authors = []

        patterns = self.options.bot_patterns
        self.reporter.info(
            render_updated_line(repo.actual_relpath, is_robot_only(authors, patterns)),
            markup=True,
        )
        link = get_compare_link(update_range, repo.org, repo.name, self.options.host)
        self.reporter.info(render_compare_line(link, authors, patterns), markup=True)
