"""
salesdoc_services.lifecycle -- Central wiring for the document lifecycle.

Responsibility:
    Creates every kernel service exactly once for a session, configured
    from the active ``SalesDocConfig``, and exposes the inbound calls of
    the numbering/lifecycle core: approve, revise, print-count increment,
    approval status and cascade deletion.

Architecture position:
    Services -- the only layer that reads ``salesdoc_config`` and passes
    settings to kernel constructors.

Invariants enforced:
    - Single-instance lifecycle: one SequenceService per lifecycle scope,
      shared by approval.
    - Kernel services never see the config object, only plain arguments.

Usage:
    config = get_active_config()
    with session_scope() as session:
        lifecycle = DocumentLifecycleService(session, config)
        lifecycle.approve(DocumentKind.QUOTATION, quotation_id)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from salesdoc_config import SalesDocConfig
from salesdoc_kernel.domain.clock import Clock, SystemClock
from salesdoc_kernel.domain.numbering import DocumentKind
from salesdoc_kernel.models import Quotation, RootDocument
from salesdoc_kernel.selectors.document_selector import DocumentSelector, DocumentStatus
from salesdoc_kernel.services.approval_service import ApprovalService
from salesdoc_kernel.services.cascade_service import (
    CascadeDeletionService,
    CascadePlan,
    CascadeResult,
)
from salesdoc_kernel.services.revision_service import RevisionService
from salesdoc_kernel.services.sequence_service import SequenceService


class DocumentLifecycleService:
    """Facade over the kernel services for one session.

    Contract:
        Receives a Session and the effective configuration.  Constructs
        each kernel service once, in dependency order.

    Non-goals:
        - Does NOT manage transaction boundaries (caller's responsibility).
    """

    def __init__(
        self,
        session: Session,
        config: SalesDocConfig,
        clock: Clock | None = None,
    ) -> None:
        self._session = session
        self._clock = clock or SystemClock()
        numbering = config.numbering

        self.documents = DocumentSelector(session)
        self.sequences = SequenceService(session)
        self.approval = ApprovalService(
            session,
            self.sequences,
            self._clock,
            tz=numbering.tzinfo,
            quotation_mint_max_attempts=numbering.quotation_mint_max_attempts,
        )
        self.revision = RevisionService(
            session, strict_grammar=numbering.strict_revision_grammar
        )
        self.cascade = CascadeDeletionService(session)

    def approve(self, kind: DocumentKind | str, document_id: UUID) -> RootDocument:
        return self.approval.approve(kind, document_id)

    def revise_number(self, kind: DocumentKind | str, document_id: UUID) -> str | None:
        return self.revision.revise(kind, document_id)

    def increment_print_count(self, kind: DocumentKind | str, document_id: UUID) -> int:
        return self.approval.increment_print_count(kind, document_id)

    def is_approved(self, kind: DocumentKind | str, document_id: UUID) -> bool:
        return self.documents.is_approved(kind, document_id)

    def status(self, kind: DocumentKind | str, document_id: UUID) -> DocumentStatus | None:
        return self.documents.status(kind, document_id)

    def mark_contractified(self, quotation_id: UUID) -> Quotation:
        return self.approval.mark_contractified(quotation_id)

    def on_before_delete(
        self, kind: DocumentKind | str, criteria: Mapping[str, Any]
    ) -> CascadePlan | None:
        return self.cascade.on_before_delete(kind, criteria)

    def delete_document(
        self, kind: DocumentKind | str, criteria: Mapping[str, Any]
    ) -> CascadeResult:
        return self.cascade.delete_document(kind, criteria)
