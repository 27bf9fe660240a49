"""
salesdoc_kernel.services.cascade_service -- Cascade deletion of root documents.

Responsibility:
    Removes a quotation or contract together with every record whose
    lifetime is bound to it.  Deletion is an explicit two-phase operation:

    1. ``collect_dependents`` resolves the owner's reference lists and
       foreign-key back-references into a frozen ``CascadePlan``.
    2. ``delete_all`` issues the deletions: dependents first, then the
       root, then any derived roots (a contract's originating quotation,
       with its own dependents).

    ``delete_document`` wraps lookup + both phases in a SAVEPOINT so that a
    failure at any step rolls back every deletion already issued.

Architecture position:
    Kernel > Services.  Never touches counters or numbering.

Invariants enforced:
    - Dependents are deleted before their owner.
    - A record reachable twice (line items shared by a contract and its
      originating quotation) is deleted once.
    - A filter that matches no document performs no cascade and no error.

Failure modes:
    - DocumentNotFoundError from ``collect_dependents`` for a missing id.
    - CascadeDeletionError from ``delete_document``; carries the document
      kind, id and failed step, with the cause chained.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salesdoc_kernel.db.errors import store_operation
from salesdoc_kernel.domain.numbering import DocumentKind
from salesdoc_kernel.exceptions import (
    CascadeDeletionError,
    DocumentNotFoundError,
    StoreFailureError,
)
from salesdoc_kernel.logging_config import LogContext, get_logger
from salesdoc_kernel.models import (
    DeliveryRecord,
    DocumentArchive,
    LineItem,
    RootDocument,
    WorkLogEntry,
    WorkLogSummary,
    model_for,
)
from salesdoc_kernel.selectors.document_selector import DocumentSelector
from salesdoc_kernel.services.base import BaseService

logger = get_logger("services.cascade")


class DependentKind(str, Enum):
    """Record types a root document owns."""

    LINE_ITEM = "line_item"
    DELIVERY_RECORD = "delivery_record"
    WORK_LOG_ENTRY = "work_log_entry"
    ARCHIVE = "archive"
    WORK_LOG_SUMMARY = "work_log_summary"


_DEPENDENT_MODELS: dict[DependentKind, type] = {
    DependentKind.LINE_ITEM: LineItem,
    DependentKind.DELIVERY_RECORD: DeliveryRecord,
    DependentKind.WORK_LOG_ENTRY: WorkLogEntry,
    DependentKind.ARCHIVE: DocumentArchive,
    DependentKind.WORK_LOG_SUMMARY: WorkLogSummary,
}


@dataclass(frozen=True)
class DependentRef:
    kind: DependentKind
    record_id: UUID


@dataclass(frozen=True)
class CascadePlan:
    """
    Everything that goes when ``root_id`` goes.

    ``dependents`` are deleted before the root, in order.  ``derived``
    plans are executed after the root is gone.
    """

    root_kind: DocumentKind
    root_id: UUID
    dependents: tuple[DependentRef, ...] = ()
    derived: tuple["CascadePlan", ...] = ()

    def all_dependents(self) -> tuple[DependentRef, ...]:
        refs = list(self.dependents)
        for plan in self.derived:
            refs.extend(plan.all_dependents())
        return tuple(refs)

    def all_roots(self) -> tuple[tuple[DocumentKind, UUID], ...]:
        roots = [(self.root_kind, self.root_id)]
        for plan in self.derived:
            roots.extend(plan.all_roots())
        return tuple(roots)


@dataclass
class CascadeResult:
    """Outcome of ``delete_document``; ``removed`` counts rows per record type."""

    plan: CascadePlan | None
    removed: dict[str, int] = field(default_factory=dict)

    def _add(self, key: str, count: int) -> None:
        self.removed[key] = self.removed.get(key, 0) + count


class CascadeDeletionService(BaseService):
    """
    Deletes root documents with their dependent records.

    Guarantees:
        - ``delete_document`` is all-or-nothing for the caller: on error
          nothing it deleted survives the savepoint rollback and the root
          is still present.
    """

    def __init__(self, session: Session):
        super().__init__(session)
        self._documents = DocumentSelector(session)

    # ------------------------------------------------------------------
    # Phase 1: collect
    # ------------------------------------------------------------------

    def collect_dependents(self, kind: DocumentKind | str, document_id: UUID) -> CascadePlan:
        kind = DocumentKind.coerce(kind)
        doc = self._documents.get(kind, document_id)
        if doc is None:
            raise DocumentNotFoundError(kind.value, str(document_id))
        return self._plan_for(kind, doc)

    def _plan_for(self, kind: DocumentKind, doc: RootDocument) -> CascadePlan:
        refs: list[DependentRef] = [
            DependentRef(DependentKind.LINE_ITEM, record_id)
            for record_id in (doc.line_item_ids or [])
        ]

        if kind is DocumentKind.QUOTATION:
            refs += self._back_references(DependentKind.ARCHIVE, DocumentArchive.quotation_id, doc.id)
            return CascadePlan(kind, doc.id, tuple(refs))

        refs += [DependentRef(DependentKind.DELIVERY_RECORD, i) for i in (doc.delivery_record_ids or [])]
        refs += [DependentRef(DependentKind.WORK_LOG_ENTRY, i) for i in (doc.work_log_ids or [])]
        refs += self._back_references(DependentKind.ARCHIVE, DocumentArchive.contract_id, doc.id)
        refs += self._back_references(DependentKind.WORK_LOG_SUMMARY, WorkLogSummary.contract_id, doc.id)

        derived: tuple[CascadePlan, ...] = ()
        if doc.quotation_id is not None:
            quotation = self._documents.get(DocumentKind.QUOTATION, doc.quotation_id)
            if quotation is not None:
                derived = (self._plan_for(DocumentKind.QUOTATION, quotation),)
            else:
                logger.warning(
                    "originating_quotation_missing",
                    extra={"contract_id": doc.id, "quotation_id": doc.quotation_id},
                )
        return CascadePlan(kind, doc.id, tuple(refs), derived)

    def _back_references(self, kind: DependentKind, fk_column, owner_id: UUID) -> list[DependentRef]:
        model = _DEPENDENT_MODELS[kind]
        with store_operation("cascade_collect", dependent_kind=kind.value, owner_id=owner_id):
            ids = self.session.execute(select(model.id).where(fk_column == owner_id)).scalars().all()
        return [DependentRef(kind, record_id) for record_id in ids]

    # ------------------------------------------------------------------
    # Phase 2: delete
    # ------------------------------------------------------------------

    def delete_all(self, plan: CascadePlan) -> CascadeResult:
        """Execute ``plan``: dependents, root, then derived plans."""
        result = CascadeResult(plan)
        self._execute(plan, result, seen=set())
        return result

    def _execute(self, plan: CascadePlan, result: CascadeResult, seen: set[DependentRef]) -> None:
        self._delete_dependents(plan.dependents, result, seen)
        self._delete_root(plan.root_kind, plan.root_id, result)
        for derived in plan.derived:
            self._execute(derived, result, seen)

    def _delete_dependents(
        self,
        refs: Iterable[DependentRef],
        result: CascadeResult,
        seen: set[DependentRef],
    ) -> None:
        grouped: dict[DependentKind, list[UUID]] = {}
        for ref in refs:
            if ref in seen:
                continue
            seen.add(ref)
            grouped.setdefault(ref.kind, []).append(ref.record_id)

        for kind in DependentKind:
            ids = grouped.get(kind)
            if not ids:
                continue
            model = _DEPENDENT_MODELS[kind]
            with store_operation(f"delete:{kind.value}", count=len(ids)):
                removed = self.session.execute(delete(model).where(model.id.in_(ids))).rowcount
            result._add(kind.value, removed)

    def _delete_root(self, kind: DocumentKind, document_id: UUID, result: CascadeResult) -> None:
        model = model_for(kind)
        with store_operation(f"delete:{kind.value}", document_id=document_id):
            removed = self.session.execute(delete(model).where(model.id == document_id)).rowcount
        result._add(kind.value, removed)

    # ------------------------------------------------------------------
    # Interceptor entry points
    # ------------------------------------------------------------------

    def on_before_delete(
        self, kind: DocumentKind | str, criteria: Mapping[str, Any]
    ) -> CascadePlan | None:
        """
        Pre-delete step for the first document matching ``criteria``.

        Collects the plan and deletes the dependents, then every derived
        root with its own dependents (a contract's originating quotation).
        The matched root itself is left for the caller's delete.  Returns
        None, with no side effects, when nothing matches.
        """
        kind = DocumentKind.coerce(kind)
        doc = self._documents.find_one(kind, criteria)
        if doc is None:
            logger.debug(
                "cascade_skipped_no_match",
                extra={"document_kind": kind.value, "criteria": dict(criteria)},
            )
            return None

        plan = self._plan_for(kind, doc)
        result = CascadeResult(plan)
        seen: set[DependentRef] = set()
        with LogContext.bind(document_id=str(doc.id), document_kind=kind.value):
            self._delete_dependents(plan.dependents, result, seen)
            for derived in plan.derived:
                self._execute(derived, result, seen)
            logger.info("cascade_dependents_deleted", extra={"removed": result.removed})
        return plan

    def delete_document(
        self, kind: DocumentKind | str, criteria: Mapping[str, Any]
    ) -> CascadeResult:
        """
        Delete the first document matching ``criteria`` with its cascade.

        Raises:
            CascadeDeletionError: any step failed; nothing was deleted.
        """
        kind = DocumentKind.coerce(kind)
        model = model_for(kind)
        step = "lookup"
        document_id: UUID | None = None

        savepoint = self.session.begin_nested()
        try:
            doc = self._documents.find_one(kind, criteria)
            if doc is None:
                logger.debug(
                    "cascade_skipped_no_match",
                    extra={"document_kind": kind.value, "criteria": dict(criteria)},
                )
                step = "delete_root"
                with store_operation(f"delete:{kind.value}"):
                    removed = self.session.execute(delete(model).filter_by(**criteria)).rowcount
                savepoint.commit()
                result = CascadeResult(None)
                result._add(kind.value, removed)
                return result

            document_id = doc.id
            with LogContext.bind(document_id=str(document_id), document_kind=kind.value):
                step = "collect"
                plan = self._plan_for(kind, doc)
                result = CascadeResult(plan)
                seen: set[DependentRef] = set()

                step = "delete_dependents"
                self._delete_dependents(plan.dependents, result, seen)
                step = "delete_root"
                self._delete_root(kind, document_id, result)
                for derived in plan.derived:
                    step = f"delete_derived:{derived.root_kind.value}"
                    self._execute(derived, result, seen)

                savepoint.commit()
                logger.info("cascade_deleted", extra={"removed": result.removed})
                return result
        except (SQLAlchemyError, StoreFailureError) as exc:
            savepoint.rollback()
            logger.error(
                "cascade_deletion_failed",
                extra={"document_kind": kind.value, "document_id": document_id, "step": step},
                exc_info=True,
            )
            raise CascadeDeletionError(
                kind.value, str(document_id) if document_id else "", step
            ) from exc
