"""
Git client infrastructure for orgsync.

Provides a clean abstraction over git command execution for one checkout.
All git operations go through GitRepo, making them:
- Easy to mock for testing
- Consistently recorded in the audit log (success and failure alike)
- Isolated from business logic

Errors are never swallowed here: every failure is reported to the audit
sink and then raised to the caller unchanged.
"""

import asyncio
import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence
import logging

from ..domain.repository import Author, UpdateRange, UpdateResult

logger = logging.getLogger(__name__)

AuditSink = Callable[[Dict[str, Any]], Awaitable[None]]

# Output is parsed as English text.
GIT_ENV_OVERRIDES = {"LC_ALL": "C"}

UPDATE_RANGE_RE = re.compile(r"Updating ([a-f0-9]+)\.\.([a-f0-9]+)")
SHORTLOG_LINE_RE = re.compile(r"^\s*(\d+)\s+(.+)$", re.MULTILINE)
BRANCH_AB_RE = re.compile(r"^# branch\.ab \+(\d+) -(\d+)$", re.MULTILINE)


class CloneProtocol(Enum):
    """Transport used when cloning a missing repository."""
    HTTPS = "https"
    SSH = "ssh"


@dataclass
class ExecResult:
    """Result of one git invocation, as recorded in the audit log."""
    command: List[str]
    cwd: str
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None or self.exit_code != 0

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'command': self.command,
            'cwd': self.cwd,
            'exit_code': self.exit_code,
            'stdout': self.stdout,
            'stderr': self.stderr,
            'failed': self.failed,
        }
        if self.error:
            result['error'] = self.error
        return result


class GitCommandError(Exception):
    """A git command failed; carries the full result."""

    def __init__(self, result: ExecResult):
        self.result = result
        detail = result.error or result.stderr.strip() or f"exit code {result.exit_code}"
        super().__init__(f"Command failed: {' '.join(result.command)}: {detail}")


def was_updated(output: str) -> bool:
    """Check if `git pull` output says the branch moved."""
    return output.startswith("Updating ")


def get_update_range(output: str) -> Optional[UpdateRange]:
    """Extract the `Updating <old>..<new>` range from `git pull` output."""
    match = UPDATE_RANGE_RE.search(output)
    if match is None:
        return None
    return UpdateRange(from_rev=match.group(1), to_rev=match.group(2))


def parse_shortlog_summary(output: str) -> List[Author]:
    """Parse `git shortlog -s` output, keeping git's own ordering."""
    return [
        Author(name=name.strip(), count=int(count))
        for count, name in SHORTLOG_LINE_RE.findall(output)
    ]


def parse_ahead_count(porcelain_v2: str) -> int:
    """Commits ahead of upstream from `git status --porcelain=v2 --branch`.

    The `# branch.ab` header is only present when an upstream is set.
    """
    match = BRANCH_AB_RE.search(porcelain_v2)
    if match is None:
        return 0
    return int(match.group(1))


def has_tracked_changes(porcelain: str) -> bool:
    """True if `git status --porcelain` lists anything but untracked files."""
    return any(
        line and not line.startswith("??")
        for line in porcelain.splitlines()
    )


def get_clone_url(org: str, name: str, protocol: CloneProtocol, host: str = "github.com") -> str:
    if protocol == CloneProtocol.SSH:
        return f"git@{host}:{org}/{name}.git"
    return f"https://{host}/{org}/{name}.git"


def get_compare_link(update_range: UpdateRange, owner: str, name: str, host: str = "github.com") -> str:
    compare = f"{update_range.from_rev}...{update_range.to_rev}"
    return f"https://{host}/{owner}/{name}/compare/{compare}"


class GitRepo:
    """
    Version-control operations for one checkout path.

    Stateless per call: the update state machine is evaluated from
    scratch every time.

    Example:
        repo = GitRepo(Path("/src/group/name"), audit_log.sink("group/name"))
        result = await repo.update()
        if result.dirty:
            print("Handle manually")
    """

    def __init__(
        self,
        path: Path,
        audit_sink: AuditSink,
        main_branch: str = "master",
        host: str = "github.com",
    ):
        """
        Initialize GitRepo.

        Args:
            path: Checkout directory (need not exist before cloning)
            audit_sink: Coroutine receiving every command result
            main_branch: Branch that is pulled; any other branch is only fetched
            host: Git hosting service used for clone URLs
        """
        self.path = Path(path)
        self.audit_sink = audit_sink
        self.main_branch = main_branch
        self.host = host

    async def _exec(self, args: Sequence[str], cwd: Path) -> ExecResult:
        command = ["git", *args]
        result = ExecResult(command=command, cwd=str(cwd))
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(cwd),
                stdin=asyncio.subprocess.DEVNULL,
                env={**os.environ, **GIT_ENV_OVERRIDES},
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
            stdout, stderr = await process.communicate()
            result.exit_code = process.returncode
            result.stderr = stderr.decode('utf-8', errors='replace')
            result.stdout = stdout.decode('utf-8')
        except UnicodeDecodeError as e:
            result.error = f"Non-text output: {e}"
        except OSError as e:
            result.error = str(e)

        await self.audit_sink(result.to_dict())

        if result.failed:
            logger.debug(f"git {' '.join(args)} failed in {cwd}: {result.error or result.stderr.strip()}")
            raise GitCommandError(result)
        return result

    async def git(self, *args: str) -> str:
        """Run git in the checkout; returns stdout."""
        result = await self._exec(args, cwd=self.path)
        return result.stdout

    async def get_current_branch(self) -> str:
        return (await self.git("rev-parse", "--abbrev-ref", "HEAD")).strip()

    async def has_changes_in_progress(self) -> bool:
        """Any tracked-file modification. Untracked files are ignored."""
        return has_tracked_changes(await self.git("status", "--porcelain"))

    async def has_unpushed_commits(self) -> bool:
        """True if the current branch is ahead of its upstream."""
        output = await self.git("status", "--porcelain=v2", "--branch")
        return parse_ahead_count(output) > 0

    async def get_authors_for_range(self, update_range: UpdateRange) -> List[Author]:
        output = await self.git(
            "shortlog", "-s", f"{update_range.from_rev}..{update_range.to_rev}"
        )
        return parse_shortlog_summary(output)

    async def clone_from(self, org: str, name: str, protocol: CloneProtocol) -> None:
        """Clone into the bound path, creating parent directories as needed."""
        parent = self.path.parent
        parent.mkdir(parents=True, exist_ok=True)
        url = get_clone_url(org, name, protocol, self.host)
        await self._exec(["clone", url, str(self.path)], cwd=parent)

    async def _fetch_only(self) -> UpdateResult:
        await self.git("fetch")
        return UpdateResult.fetched_only()

    async def update(self) -> UpdateResult:
        """
        Bring the checkout up to date without touching local work.

        Dirty working trees and checkouts on another branch than the main
        branch are only fetched. Otherwise a rebasing pull is done.
        """
        if await self.has_changes_in_progress():
            return await self._fetch_only()

        if await self.get_current_branch() != self.main_branch:
            return await self._fetch_only()

        output = await self.git("pull", "--rebase")
        update_range = get_update_range(output)
        if was_updated(output) and update_range is not None:
            return UpdateResult(dirty=False, updated=True, updated_range=update_range)
        return UpdateResult(dirty=False, updated=False)
