"""
Infrastructure layer for orgsync.

Contains abstractions for external systems:
- GitRepo: Git command execution for one checkout
- GitHubClient: GitHub API access (organization repository listing)
- AuditLog: Append-only JSONL record of executed commands

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import (
    GitRepo,
    GitCommandError,
    ExecResult,
    CloneProtocol,
    get_compare_link,
)
from .github_client import GitHubClient
from .audit_log import AuditLog

__all__ = [
    'GitRepo',
    'GitCommandError',
    'ExecResult',
    'CloneProtocol',
    'get_compare_link',
    'GitHubClient',
    'AuditLog',
]
