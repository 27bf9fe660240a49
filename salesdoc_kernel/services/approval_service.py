"""
salesdoc_kernel.services.approval_service -- Draft-to-approved transition.

Responsibility:
    Approves quotations and contracts.  Approval is where a document number
    is minted: the sequence service supplies the counter value for the
    document's series, the numbering grammar renders it, and the number,
    approved flag and approval timestamp are written together.  Also owns
    the print counter and the quotation's contractified flag.

Architecture position:
    Kernel > Services.  May import from domain/, models/, selectors/, db/.

Invariants enforced:
    - One-way lifecycle: draft -> approved only.
    - Single mint: approving an approved document returns it unchanged.
    - Quotation numbers are re-checked against existing quotations and
      re-minted on collision, up to ``quotation_mint_max_attempts``.
    - Contract numbers are not re-checked; the unique constraint on
      contracts.document_number is the guard.

Failure modes:
    - DocumentNotFoundError if the document id does not exist.
    - DocumentNumberCollisionError when every quotation mint attempt collides.
    - StoreFailureError on any persistence error (including a contract
      number collision rejected by the unique constraint).
"""

from __future__ import annotations

from datetime import date, timezone, tzinfo
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from salesdoc_kernel.db.errors import store_operation
from salesdoc_kernel.domain.clock import Clock, SystemClock
from salesdoc_kernel.domain.fiscal_year import fiscal_year_for
from salesdoc_kernel.domain.lifecycle import DocumentState, require_transition
from salesdoc_kernel.domain.numbering import DocumentKind, format_document_number
from salesdoc_kernel.exceptions import (
    DocumentNotFoundError,
    DocumentNumberCollisionError,
    InvalidStateTransitionError,
)
from salesdoc_kernel.logging_config import LogContext, get_logger
from salesdoc_kernel.models import Contract, Quotation, RootDocument, model_for
from salesdoc_kernel.selectors.document_selector import DocumentSelector
from salesdoc_kernel.services.base import BaseService
from salesdoc_kernel.services.sequence_service import SequenceService

logger = get_logger("services.approval")

DEFAULT_QUOTATION_MINT_MAX_ATTEMPTS = 50


class ApprovalService(BaseService):
    """
    Approval lifecycle for numbered root documents.

    Guarantees:
        - After ``approve`` returns, ``document_number`` is set and
          ``approved`` is True, flushed in the caller's transaction.
        - ``approved_at`` comes from the injected clock; the as-of date for
          fiscal-year resolution is that instant seen in ``tz``.
    """

    def __init__(
        self,
        session: Session,
        sequence_service: SequenceService | None = None,
        clock: Clock | None = None,
        *,
        tz: tzinfo = timezone.utc,
        quotation_mint_max_attempts: int = DEFAULT_QUOTATION_MINT_MAX_ATTEMPTS,
    ):
        super().__init__(session)
        self._sequences = sequence_service or SequenceService(session)
        self._clock = clock or SystemClock()
        self._tz = tz
        self._max_attempts = quotation_mint_max_attempts
        self._documents = DocumentSelector(session)

    # ------------------------------------------------------------------
    # Approval
    # ------------------------------------------------------------------

    def approve(self, kind: DocumentKind | str, document_id: UUID) -> RootDocument:
        """
        Approve a draft document and mint its number.

        Preconditions:
            - The caller is within an active transaction.
        Postconditions:
            - The document is approved and numbered (or was already).
        Raises:
            DocumentNotFoundError, DocumentNumberCollisionError, StoreFailureError.
        """
        kind = DocumentKind.coerce(kind)
        model = model_for(kind)

        with LogContext.bind(document_id=str(document_id), document_kind=kind.value):
            with store_operation("document_lock_for_approval", document_kind=kind.value, document_id=document_id):
                doc = self.session.execute(
                    select(model).where(model.id == document_id).with_for_update()
                ).scalar_one_or_none()
            if doc is None:
                raise DocumentNotFoundError(kind.value, str(document_id))

            current = DocumentState.of(doc.approved)
            if current is DocumentState.APPROVED:
                logger.info(
                    "approval_already_applied",
                    extra={"document_number": doc.document_number},
                )
                return doc
            require_transition(current, DocumentState.APPROVED)

            approved_at = self._clock.now()
            as_of = approved_at.astimezone(self._tz).date()

            if kind is DocumentKind.QUOTATION:
                number = self._mint_quotation_number(doc, as_of)
            else:
                number = self._mint_contract_number(doc, as_of)

            doc.document_number = number
            doc.approved = True
            doc.approved_at = approved_at
            with store_operation("document_approve", document_kind=kind.value, document_id=document_id):
                self.session.flush()

            logger.info(
                "document_approved",
                extra={
                    "document_number": number,
                    "fiscal_year": fiscal_year_for(as_of),
                },
            )
            return doc

    def _mint_quotation_number(self, doc: Quotation, as_of: date) -> str:
        series_key = DocumentKind.QUOTATION.series_key
        fiscal_year = fiscal_year_for(as_of)
        candidate = ""
        for attempt in range(1, self._max_attempts + 1):
            sequence = self._sequences.next_value(series_key, as_of)
            candidate = format_document_number(DocumentKind.QUOTATION, fiscal_year, sequence)
            if not self._documents.number_exists(DocumentKind.QUOTATION, candidate, exclude_id=doc.id):
                return candidate
            logger.warning(
                "document_number_collision",
                extra={
                    "series_key": series_key,
                    "document_number": candidate,
                    "attempt": attempt,
                },
            )
        raise DocumentNumberCollisionError(series_key, str(doc.id), self._max_attempts, candidate)

    def _mint_contract_number(self, doc: Contract, as_of: date) -> str:
        sequence = self._sequences.next_value(DocumentKind.CONTRACT.series_key, as_of)
        return format_document_number(
            DocumentKind.CONTRACT,
            fiscal_year_for(as_of),
            sequence,
            organizational=doc.organizational,
        )

    # ------------------------------------------------------------------
    # Print counter / contractified flag
    # ------------------------------------------------------------------

    def increment_print_count(self, kind: DocumentKind | str, document_id: UUID) -> int:
        """Add one to the document's print counter and return the new count."""
        kind = DocumentKind.coerce(kind)
        model = model_for(kind)
        with store_operation("document_increment_print_count", document_kind=kind.value, document_id=document_id):
            count = self.session.execute(
                update(model)
                .where(model.id == document_id)
                .values(print_count=model.print_count + 1)
                .returning(model.print_count)
                .execution_options(synchronize_session=False)
            ).scalar_one_or_none()
        if count is None:
            raise DocumentNotFoundError(kind.value, str(document_id))

        cached = self.session.identity_map.get(self.session.identity_key(model, document_id))
        if cached is not None:
            self.session.expire(cached, ["print_count"])

        logger.debug(
            "print_count_incremented",
            extra={"document_kind": kind.value, "document_id": document_id, "print_count": count},
        )
        return count

    def mark_contractified(self, quotation_id: UUID) -> Quotation:
        """Record that a contract has been raised from an approved quotation."""
        quotation = self._documents.get(DocumentKind.QUOTATION, quotation_id)
        if quotation is None:
            raise DocumentNotFoundError(DocumentKind.QUOTATION.value, str(quotation_id))
        if not quotation.approved:
            raise InvalidStateTransitionError(DocumentState.DRAFT.value, "contractified")
        if not quotation.contractified:
            quotation.contractified = True
            with store_operation("quotation_mark_contractified", document_id=quotation_id):
                self.session.flush()
            logger.info(
                "quotation_contractified",
                extra={"document_id": quotation_id, "document_number": quotation.document_number},
            )
        return quotation
