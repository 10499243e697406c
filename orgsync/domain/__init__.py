"""
Domain layer for orgsync.

Contains pure domain objects with no I/O or side effects:
- ExpectedRepo / Alias: What the desired state declares
- ActualRepo: An expected repository found on disk
- UpdateResult: Outcome of one update attempt

These objects are immutable and recomputed on every run.
"""

from .repository import (
    Alias,
    ExpectedRepo,
    ActualRepo,
    UpdateRange,
    UpdateResult,
    RepoWithUpdateResult,
    Author,
    RemoteRepo,
    make_relpath,
)

__all__ = [
    'Alias',
    'ExpectedRepo',
    'ActualRepo',
    'UpdateRange',
    'UpdateResult',
    'RepoWithUpdateResult',
    'Author',
    'RemoteRepo',
    'make_relpath',
]
