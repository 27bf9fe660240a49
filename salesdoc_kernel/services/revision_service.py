"""
salesdoc_kernel.services.revision_service -- Revision chain of document numbers.

Responsibility:
    Replaces an approved document's number with the next link of its
    revision chain (``.../R1``, ``.../R2``, ...).  Never touches the
    sequence counters.

Architecture position:
    Kernel > Services.  Grammar lives in domain.numbering; this module only
    loads, rewrites and flushes.

Failure modes:
    - MalformedDocumentNumberError when the stored number does not parse
      and strict grammar is enabled.  In lenient mode the condition is
      logged as ``malformed_document_number_coerced`` and the legacy
      positional rewrite is applied instead.
    - StoreFailureError on any persistence error.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from salesdoc_kernel.db.errors import store_operation
from salesdoc_kernel.domain.numbering import DocumentKind, DocumentNumber, legacy_revise
from salesdoc_kernel.exceptions import MalformedDocumentNumberError
from salesdoc_kernel.logging_config import LogContext, get_logger
from salesdoc_kernel.models import model_for
from salesdoc_kernel.services.base import BaseService

logger = get_logger("services.revision")


class RevisionService(BaseService):
    """
    Revise document numbers.

    Guarantees:
        - A draft document, or one without a number, is left untouched
          and ``revise`` returns None.
        - Otherwise the new number is flushed and returned.  The previous
          number is not retained here (archiving is the caller's concern).
    """

    def __init__(self, session: Session, *, strict_grammar: bool = True):
        super().__init__(session)
        self._strict = strict_grammar

    def next_revision(self, kind: DocumentKind | str, document_number: str) -> str:
        """Next number in the revision chain of ``document_number`` (pure)."""
        kind = DocumentKind.coerce(kind)
        try:
            return str(DocumentNumber.parse(document_number, kind).revised())
        except MalformedDocumentNumberError as exc:
            if self._strict:
                raise
            revised = legacy_revise(document_number, kind)
            logger.warning(
                "malformed_document_number_coerced",
                extra={
                    "document_number": document_number,
                    "revised_number": revised,
                    "reason": exc.reason,
                },
            )
            return revised

    def revise(self, kind: DocumentKind | str, document_id: UUID) -> str | None:
        """
        Move the document to the next revision of its number.

        Returns:
            The new number, or None when there was nothing to revise
            (missing document, draft, or no number).
        """
        kind = DocumentKind.coerce(kind)
        with LogContext.bind(document_id=str(document_id), document_kind=kind.value):
            model = model_for(kind)
            with store_operation("document_lock_for_revision", document_kind=kind.value, document_id=document_id):
                doc = self.session.execute(
                    select(model)
                    .where(model.id == document_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                ).scalar_one_or_none()
            if doc is None or not doc.approved or not doc.document_number:
                logger.debug(
                    "revision_skipped",
                    extra={"found": doc is not None, "approved": bool(doc and doc.approved)},
                )
                return None

            previous = doc.document_number
            revised = self.next_revision(kind, previous)
            doc.document_number = revised
            with store_operation("document_revise", document_kind=kind.value, document_id=document_id):
                self.session.flush()

            logger.info(
                "document_number_revised",
                extra={"previous_number": previous, "document_number": revised},
            )
            return revised
