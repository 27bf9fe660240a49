"""
Tests for RevisionService -- revision chain of approved documents.

Covers:
- revise(): quotation and contract chains, persisted number, no counter use
- revise() reads the locked row, not the session cache
- no-op for drafts and missing documents
- strict grammar rejects malformed numbers; lenient grammar coerces with a warning
"""

from uuid import uuid4

import pytest
from sqlalchemy import update

from salesdoc_kernel.exceptions import MalformedDocumentNumberError
from salesdoc_kernel.models import Contract
from salesdoc_kernel.services.revision_service import RevisionService


class TestReviseQuotation:
    def test_chain(self, revision_service, make_quotation):
        quotation = make_quotation(document_number="EPPL/ATT/QTN/2024-25/12")

        assert revision_service.revise("quotation", quotation.id) == "EPPL/ATT/QTN/2024-25/12/R1"
        assert revision_service.revise("quotation", quotation.id) == "EPPL/ATT/QTN/2024-25/12/R2"
        assert quotation.document_number == "EPPL/ATT/QTN/2024-25/12/R2"

    def test_does_not_touch_counter(self, revision_service, make_quotation, sequence_service):
        quotation = make_quotation(document_number="EPPL/ATT/QTN/2024-25/12")
        revision_service.revise("quotation", quotation.id)
        assert sequence_service.current("quotation") is None

    def test_approved_then_revised(self, approval_service, revision_service, make_quotation):
        quotation = make_quotation()
        approval_service.approve("quotation", quotation.id)
        assert revision_service.revise("quotation", quotation.id) == "EPPL/ATT/QTN/2024-25/2/R1"


class TestReviseContract:
    def test_plain_contract(self, revision_service, make_contract):
        contract = make_contract(document_number="PRE/2024-25/7")
        assert revision_service.revise("contract", contract.id) == "PRE/2024-25/7/R1"
        assert revision_service.revise("contract", contract.id) == "PRE/2024-25/7/R2"

    def test_organizational_contract(self, revision_service, make_contract):
        contract = make_contract(document_number="OS/PRE/2024-25/7/R3", organizational=True)
        assert revision_service.revise("contract", contract.id) == "OS/PRE/2024-25/7/R4"

    def test_revises_the_stored_number(self, session, revision_service, make_contract):
        contract = make_contract(document_number="PRE/2024-25/7")
        # Another transaction revised it; this session still caches the old number.
        session.execute(
            update(Contract)
            .where(Contract.id == contract.id)
            .values(document_number="PRE/2024-25/7/R3")
            .execution_options(synchronize_session=False)
        )
        assert contract.document_number == "PRE/2024-25/7"

        assert revision_service.revise("contract", contract.id) == "PRE/2024-25/7/R4"


class TestNoOp:
    def test_draft_is_untouched(self, revision_service, make_quotation, captured_logs):
        quotation = make_quotation()

        assert revision_service.revise("quotation", quotation.id) is None
        assert quotation.document_number is None
        assert any(r["message"] == "revision_skipped" for r in captured_logs())

    def test_missing_document(self, revision_service):
        assert revision_service.revise("contract", uuid4()) is None


class TestGrammarModes:
    def test_strict_rejects_malformed(self, revision_service, make_contract):
        contract = make_contract(document_number="PRE/2024-25/7/X9")

        with pytest.raises(MalformedDocumentNumberError) as exc_info:
            revision_service.revise("contract", contract.id)

        assert exc_info.value.document_number == "PRE/2024-25/7/X9"
        assert contract.document_number == "PRE/2024-25/7/X9"

    def test_lenient_coerces_and_warns(self, session, make_quotation, captured_logs):
        service = RevisionService(session, strict_grammar=False)
        quotation = make_quotation(document_number="EPPL/ATT/QTN/2024-25")

        assert service.revise("quotation", quotation.id) == "EPPL/ATT/QTN/2024-25/R1"

        warning = next(r for r in captured_logs() if r["message"] == "malformed_document_number_coerced")
        assert warning["level"] == "WARNING"
        assert warning["revised_number"] == "EPPL/ATT/QTN/2024-25/R1"

    def test_next_revision_is_pure(self, revision_service):
        assert revision_service.next_revision("contract", "OS/PRE/2024-25/9") == "OS/PRE/2024-25/9/R1"
