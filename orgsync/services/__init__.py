"""
Service layer for orgsync.

Services contain business logic and orchestrate domain objects
and infrastructure. They are designed to be:
- Testable (dependencies injected)
- Composable (can be combined)
- Stateless across runs (everything is recomputed each time)

Services:
- ExpectedStateResolver: Desired state to ExpectedRepo list
- classify: Local tree to found/unknown/moved/missing
- UpdateOrchestrator: Bounded-concurrency git updates
- SyncService: The full reconciliation run
"""

from .expected_state import ExpectedStateResolver
from .classifier import Classification, classify
from .update_service import AdmissionGate, UpdateOrchestrator
from .sync_service import SyncOptions, SyncOutcome, SyncService

__all__ = [
    'ExpectedStateResolver',
    'Classification',
    'classify',
    'AdmissionGate',
    'UpdateOrchestrator',
    'SyncOptions',
    'SyncOutcome',
    'SyncService',
]
