"""ORM models for root documents and their dependent records."""

from salesdoc_kernel.domain.numbering import DocumentKind
from salesdoc_kernel.models.dependents import (
    DeliveryRecord,
    DocumentArchive,
    LineItem,
    WorkLogEntry,
    WorkLogSummary,
)
from salesdoc_kernel.models.documents import Contract, DocType, Quotation, RootDocumentMixin

RootDocument = Quotation | Contract

_MODEL_BY_KIND: dict[DocumentKind, type[Quotation] | type[Contract]] = {
    DocumentKind.QUOTATION: Quotation,
    DocumentKind.CONTRACT: Contract,
}


def model_for(kind: DocumentKind | str) -> type[Quotation] | type[Contract]:
    """ORM class holding documents of ``kind``."""
    return _MODEL_BY_KIND[DocumentKind.coerce(kind)]


__all__ = [
    "Contract",
    "DeliveryRecord",
    "DocType",
    "DocumentArchive",
    "LineItem",
    "Quotation",
    "RootDocument",
    "RootDocumentMixin",
    "WorkLogEntry",
    "WorkLogSummary",
    "model_for",
]
