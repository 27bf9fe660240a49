"""Services for the sales document kernel (write side)."""

from salesdoc_kernel.services.approval_service import ApprovalService
from salesdoc_kernel.services.cascade_service import (
    CascadeDeletionService,
    CascadePlan,
    CascadeResult,
    DependentKind,
    DependentRef,
)
from salesdoc_kernel.services.revision_service import RevisionService
from salesdoc_kernel.services.sequence_service import (
    CounterSnapshot,
    SequenceCounter,
    SequenceService,
)

__all__ = [
    "ApprovalService",
    "CascadeDeletionService",
    "CascadePlan",
    "CascadeResult",
    "CounterSnapshot",
    "DependentKind",
    "DependentRef",
    "RevisionService",
    "SequenceCounter",
    "SequenceService",
]
