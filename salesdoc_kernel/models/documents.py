"""
Module: salesdoc_kernel.models.documents
Responsibility: ORM persistence for the two numbered root documents,
    Quotation and Contract.  Both carry the shared numbering/approval
    columns from RootDocumentMixin plus ordered reference lists to their
    dependent records.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, or outer layers.

Invariants enforced:
    - document_number IS NOT NULL iff approved (ck_*_number_iff_approved).
    - document_number is unique per table (uq_*_document_number).
    - A contract's quotation back-reference is nulled by the database if
      the quotation row is removed on its own (ON DELETE SET NULL).

Failure modes:
    - IntegrityError on a duplicate document_number.  For contracts this is
      the only collision guard; the approval service surfaces it as
      StoreFailureError.
"""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, validates

from salesdoc_kernel.db.base import TrackedBase, UUIDList, UUIDString

_NUMBER_IFF_APPROVED = (
    "(approved AND document_number IS NOT NULL) "
    "OR (NOT approved AND document_number IS NULL)"
)


class DocType(str, Enum):
    """Document subtype.  Affects document content only, never the number."""

    STANDARD = "standard"
    SUPPLY_APPLY = "supply/apply"
    SUPPLY = "supply"


class RootDocumentMixin:
    """Columns shared by every numbered root document."""

    document_number: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        doc="Formatted identifier; NULL until approved",
    )

    approved: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    approved_at: Mapped[datetime | None] = mapped_column(
        nullable=True,
        doc="Approval timestamp (the document date)",
    )

    doc_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=DocType.STANDARD.value,
    )

    print_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    sales_person_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    group_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    line_item_ids: Mapped[list[UUID]] = mapped_column(
        UUIDList,
        nullable=False,
        default=list,
        doc="Ordered LineItem ids",
    )


class Quotation(RootDocumentMixin, TrackedBase):
    """
    Sales quotation.

    Guarantees:
        - Numbered in the "quotation" series once approved.
        - contractified flips to True once a contract is raised from it
          and never flips back.
    """

    __tablename__ = "quotations"

    __table_args__ = (
        UniqueConstraint("document_number", name="uq_quotation_document_number"),
        CheckConstraint(_NUMBER_IFF_APPROVED, name="ck_quotation_number_iff_approved"),
        Index("idx_quotation_approved", "approved"),
    )

    contractified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    def __repr__(self) -> str:
        return f"<Quotation {self.document_number or self.id}>"


class Contract(RootDocumentMixin, TrackedBase):
    """
    Contract, usually raised from an approved quotation.

    Guarantees:
        - Numbered in the "contract" series once approved; the
          organizational flag selects the OS-prefixed form.
        - delivery_record_ids and work_log_ids are ordered reference lists
          owned by this contract.
    """

    __tablename__ = "contracts"

    __table_args__ = (
        UniqueConstraint("document_number", name="uq_contract_document_number"),
        CheckConstraint(_NUMBER_IFF_APPROVED, name="ck_contract_number_iff_approved"),
        Index("idx_contract_quotation", "quotation_id"),
        Index("idx_contract_approved", "approved"),
    )

    organizational: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="OS flag; renders OS/PRE/... numbers",
    )

    quotation_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("quotations.id", ondelete="SET NULL"),
        nullable=True,
    )

    delivery_record_ids: Mapped[list[UUID]] = mapped_column(
        UUIDList,
        nullable=False,
        default=list,
    )

    work_log_ids: Mapped[list[UUID]] = mapped_column(
        UUIDList,
        nullable=False,
        default=list,
    )

    warranty_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    work_order_no: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    work_order_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    gst_no: Mapped[str] = mapped_column(String(20), nullable=False, default="")

    @validates("gst_no")
    def _normalize_gst_no(self, key: str, value: str | None) -> str:
        return (value or "").strip().upper()

    def __repr__(self) -> str:
        return f"<Contract {self.document_number or self.id}>"
