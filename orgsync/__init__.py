"""
orgsync - Keep a grouped working directory of an organization's repositories
in sync with its desired-state definition.

The working directory is laid out as `<rootdir>/<project>/<repo>`. A run
reconciles three views: the declared desired state, the repositories that
exist on GitHub, and the checkouts on disk.

Quick Start:
    import asyncio
    from pathlib import Path
    import orgsync

    manifest = orgsync.load_manifest(orgsync.find_manifest(Path.cwd(), ".orgsync.yaml"))
    resolver = orgsync.ExpectedStateResolver(manifest.rootdir)
    service = orgsync.SyncService(manifest, resolver, orgsync.Reporter(),
                                  orgsync.ClickLineReader())
    outcome = asyncio.run(service.run())

Domain Objects:
    ExpectedRepo - Repository declared by the desired state
    ActualRepo - Expected repository found on disk
    UpdateResult - Outcome of one update attempt

Services:
    ExpectedStateResolver - Desired state to expected repositories
    classify - Local tree classification
    UpdateOrchestrator - Bounded-concurrency updates
    SyncService - Full reconciliation run
"""

__version__ = "0.1.0"

from .domain import (
    Alias,
    ExpectedRepo,
    ActualRepo,
    UpdateResult,
    RepoWithUpdateResult,
)

from .services import (
    ExpectedStateResolver,
    Classification,
    classify,
    UpdateOrchestrator,
    SyncOptions,
    SyncOutcome,
    SyncService,
)

from .manifest import Manifest, find_manifest, load_manifest
from .prompts import ClickLineReader
from .reporter import Reporter
from .config import load_config

__all__ = [
    "__version__",
    "Alias",
    "ExpectedRepo",
    "ActualRepo",
    "UpdateResult",
    "RepoWithUpdateResult",
    "ExpectedStateResolver",
    "Classification",
    "classify",
    "UpdateOrchestrator",
    "SyncOptions",
    "SyncOutcome",
    "SyncService",
    "Manifest",
    "find_manifest",
    "load_manifest",
    "ClickLineReader",
    "Reporter",
    "load_config",
]
