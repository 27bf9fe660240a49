"""
Module: salesdoc_kernel.models.dependents
Responsibility: ORM persistence for records whose lifetime is bound to a
    single root document: line items, delivery records, work log entries,
    the per-contract work log summary and the archive (history) record.
Architecture position: Kernel > Models.  May import from db/base.py only.

Ownership:
    - LineItem, DeliveryRecord, WorkLogEntry are referenced by id from the
      owner's ordered reference lists (Quotation/Contract.*_ids).
    - WorkLogSummary and DocumentArchive point back at their owner by
      foreign key, at most one per owner.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Date, ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from salesdoc_kernel.db.base import Base, UUIDString


class LineItem(Base):
    """Quoted line (work description, area/quantity, rate)."""

    __tablename__ = "line_items"

    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    quantity: Mapped[Decimal | None] = mapped_column(nullable=True)
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    rate: Mapped[Decimal | None] = mapped_column(nullable=True)


class DeliveryRecord(Base):
    """Delivery challan issued against a contract."""

    __tablename__ = "delivery_records"

    challan_no: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    delivered_on: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")


class WorkLogEntry(Base):
    """Work completion entry recorded against a contract."""

    __tablename__ = "work_log_entries"

    worked_on: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")


class WorkLogSummary(Base):
    """Contract-level work log (one per contract)."""

    __tablename__ = "work_log_summaries"

    __table_args__ = (
        UniqueConstraint("contract_id", name="uq_work_log_summary_contract"),
    )

    contract_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("contracts.id"),
        nullable=False,
    )
    remarks: Mapped[str] = mapped_column(Text, nullable=False, default="")


class DocumentArchive(Base):
    """
    History record for a quotation or contract.

    Exactly one of quotation_id / contract_id is set.  snapshot holds a
    previous rendition of the owner (e.g. before a revision).
    """

    __tablename__ = "document_archives"

    __table_args__ = (
        UniqueConstraint("quotation_id", name="uq_archive_quotation"),
        UniqueConstraint("contract_id", name="uq_archive_contract"),
    )

    quotation_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("quotations.id"),
        nullable=True,
    )
    contract_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("contracts.id"),
        nullable=True,
    )
    document_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    archived_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )
