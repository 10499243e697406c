"""
Shared fixtures for orgsync tests.
"""

import asyncio
import shutil
import subprocess
from pathlib import Path

import pytest

from orgsync.domain.repository import ActualRepo, Alias, ExpectedRepo, UpdateResult

GIT_IDENTITY = ["-c", "user.name=Test User", "-c", "user.email=test@example.com"]

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def run_git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *GIT_IDENTITY, *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def commit_file(repo: Path, filename: str, content: str, message: str, author: str = None) -> str:
    (repo / filename).write_text(content)
    run_git(repo, "add", filename)
    args = ["commit", "-m", message]
    if author:
        args += ["--author", f"{author} <{author.lower().replace(' ', '.')}@example.com>"]
    run_git(repo, *args)
    return run_git(repo, "rev-parse", "HEAD").strip()


@pytest.fixture
def upstream(tmp_path):
    """A bare repository on branch master with one commit, plus a working clone to push from."""
    bare = tmp_path / "remote.git"
    run_git(tmp_path, "init", "--bare", "-b", "master", str(bare))

    seed = tmp_path / "seed"
    run_git(tmp_path, "clone", str(bare), str(seed))
    run_git(seed, "symbolic-ref", "HEAD", "refs/heads/master")
    commit_file(seed, "README.md", "# seed\n", "Initial commit")
    run_git(seed, "push", "-u", "origin", "master")
    return bare, seed


@pytest.fixture
def checkout(tmp_path, upstream):
    """A clone of the upstream, as a synchronized checkout would be."""
    bare, _ = upstream
    path = tmp_path / "work" / "group" / "repo"
    path.parent.mkdir(parents=True)
    run_git(tmp_path, "clone", str(bare), str(path))
    return path


class FakeGit:
    """Stand-in for GitRepo recording calls, with scripted results."""

    def __init__(self, result=None, error=None, authors=None, ahead=False, delay=0.0, clone_error=None):
        self.result = result or UpdateResult(dirty=False, updated=False)
        self.error = error
        self.authors = authors or []
        self.ahead = ahead
        self.delay = delay
        self.clone_error = clone_error
        self.update_calls = 0
        self.clone_calls = []

    async def update(self):
        self.update_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result

    async def get_authors_for_range(self, update_range):
        return self.authors

    async def has_unpushed_commits(self):
        return self.ahead

    async def clone_from(self, org, name, protocol):
        self.clone_calls.append((org, name, protocol))
        if self.clone_error:
            raise self.clone_error


def make_expected(group, name, org="acme", archived=False, aliases=()):
    aliases = tuple(Alias(*alias) for alias in aliases)
    return ExpectedRepo(org=org, group=group, name=name, archived=archived, aliases=aliases)


def make_actual(expected, relpath=None, git=None):
    return ActualRepo(expected=expected, actual_relpath=relpath or expected.relpath, git=git or FakeGit())
