"""
Module: salesdoc_kernel.selectors.document_selector
Responsibility: Read-only projections over quotations and contracts:
    approval status, point lookup by id, lookup by filter criteria and
    document-number existence checks.
Architecture position: Kernel > Selectors.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select

from salesdoc_kernel.db.errors import store_operation
from salesdoc_kernel.domain.lifecycle import DocumentState
from salesdoc_kernel.domain.numbering import DocumentKind
from salesdoc_kernel.models import RootDocument, model_for
from salesdoc_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class DocumentStatus:
    """Numbering/approval projection of one root document."""

    document_kind: DocumentKind
    document_id: UUID
    document_number: str | None
    state: DocumentState
    approved_at: datetime | None
    print_count: int


class DocumentSelector(BaseSelector):
    """Read-side queries for root documents."""

    def get(self, kind: DocumentKind | str, document_id: UUID) -> RootDocument | None:
        kind = DocumentKind.coerce(kind)
        with store_operation("document_get", document_kind=kind.value, document_id=document_id):
            return self.session.get(model_for(kind), document_id)

    def find_one(
        self, kind: DocumentKind | str, criteria: Mapping[str, Any]
    ) -> RootDocument | None:
        """First document whose columns equal every value in ``criteria``."""
        kind = DocumentKind.coerce(kind)
        model = model_for(kind)
        with store_operation("document_find_one", document_kind=kind.value, criteria=dict(criteria)):
            return self.session.execute(
                select(model).filter_by(**criteria).limit(1)
            ).scalar_one_or_none()

    def is_approved(self, kind: DocumentKind | str, document_id: UUID) -> bool:
        """Approved flag of the document; False if it does not exist."""
        kind = DocumentKind.coerce(kind)
        model = model_for(kind)
        with store_operation("document_is_approved", document_kind=kind.value, document_id=document_id):
            approved = self.session.execute(
                select(model.approved).where(model.id == document_id)
            ).scalar_one_or_none()
        return bool(approved)

    def number_exists(
        self,
        kind: DocumentKind | str,
        document_number: str,
        exclude_id: UUID | None = None,
    ) -> bool:
        """True if another document of ``kind`` already holds ``document_number``."""
        kind = DocumentKind.coerce(kind)
        model = model_for(kind)
        stmt = select(model.id).where(model.document_number == document_number)
        if exclude_id is not None:
            stmt = stmt.where(model.id != exclude_id)
        with store_operation("document_number_exists", document_kind=kind.value):
            return self.session.execute(stmt.limit(1)).first() is not None

    def status(self, kind: DocumentKind | str, document_id: UUID) -> DocumentStatus | None:
        doc = self.get(kind, document_id)
        if doc is None:
            return None
        return DocumentStatus(
            document_kind=DocumentKind.coerce(kind),
            document_id=doc.id,
            document_number=doc.document_number,
            state=DocumentState.of(doc.approved),
            approved_at=doc.approved_at,
            print_count=doc.print_count,
        )
