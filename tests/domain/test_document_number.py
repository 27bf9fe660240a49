"""
Tests for the document numbering grammar.

Covers:
- format_document_number(): quotation, contract and organizational contract
- DocumentNumber.parse(): base and revised forms, malformed input
- revised(): the revision chain
- legacy_revise(): positional rewrite of identifiers that do not parse
"""

import pytest

from salesdoc_kernel.domain.numbering import (
    DocumentKind,
    DocumentNumber,
    format_document_number,
    legacy_revise,
)
from salesdoc_kernel.exceptions import MalformedDocumentNumberError, UnknownDocumentKindError


class TestDocumentKind:
    def test_series_key_is_value(self):
        assert DocumentKind.QUOTATION.series_key == "quotation"
        assert DocumentKind.CONTRACT.series_key == "contract"

    def test_coerce_string(self):
        assert DocumentKind.coerce("contract") is DocumentKind.CONTRACT
        assert DocumentKind.coerce(DocumentKind.QUOTATION) is DocumentKind.QUOTATION

    def test_coerce_unknown(self):
        with pytest.raises(UnknownDocumentKindError) as exc_info:
            DocumentKind.coerce("invoice")
        assert exc_info.value.document_kind == "invoice"


class TestFormat:
    def test_quotation(self):
        assert format_document_number("quotation", "2024-25", 7) == "EPPL/ATT/QTN/2024-25/7"

    def test_contract(self):
        assert format_document_number(DocumentKind.CONTRACT, "2024-25", 3) == "PRE/2024-25/3"

    def test_organizational_contract(self):
        assert (
            format_document_number(DocumentKind.CONTRACT, "2024-25", 3, organizational=True)
            == "OS/PRE/2024-25/3"
        )

    def test_organizational_flag_ignored_for_quotation(self):
        assert (
            format_document_number(DocumentKind.QUOTATION, "2024-25", 2, organizational=True)
            == "EPPL/ATT/QTN/2024-25/2"
        )


class TestParse:
    def test_quotation_base(self):
        number = DocumentNumber.parse("EPPL/ATT/QTN/2024-25/12", "quotation")
        assert number.kind is DocumentKind.QUOTATION
        assert number.fiscal_year == "2024-25"
        assert number.sequence == 12
        assert number.revision is None
        assert not number.organizational

    def test_quotation_revised(self):
        number = DocumentNumber.parse("EPPL/ATT/QTN/2024-25/12/R3", "quotation")
        assert number.revision == 3
        assert str(number.base) == "EPPL/ATT/QTN/2024-25/12"

    def test_contract_forms(self):
        plain = DocumentNumber.parse("PRE/2024-25/5", "contract")
        assert not plain.organizational and plain.revision is None

        org = DocumentNumber.parse("OS/PRE/2024-25/5/R2", "contract")
        assert org.organizational
        assert org.revision == 2
        assert org.sequence == 5

    @pytest.mark.parametrize(
        "text",
        [
            "EPPL/ATT/QTN/2024-25/12",
            "EPPL/ATT/QTN/2024-25/12/R9",
        ],
    )
    def test_quotation_text_round_trip(self, text):
        assert str(DocumentNumber.parse(text, "quotation")) == text

    @pytest.mark.parametrize(
        "text, reason_fragment",
        [
            ("", "empty"),
            ("EPPL/ATT/QTN/2024-25", "segments"),
            ("EPPL/ATT/QTN/2024-25/12/R1/R2", "segments"),
            ("ABC/ATT/QTN/2024-25/12", "prefix"),
            ("EPPL/ATT/QTN/2024-26/12", "fiscal year"),
            ("EPPL/ATT/QTN/2024-25/xx", "sequence"),
            ("EPPL/ATT/QTN/2024-25/12/V2", "revision"),
            ("EPPL/ATT/QTN/2024-25/12/R0", "revision"),
        ],
    )
    def test_malformed_quotation(self, text, reason_fragment):
        with pytest.raises(MalformedDocumentNumberError) as exc_info:
            DocumentNumber.parse(text, "quotation")
        assert exc_info.value.document_number == text
        assert reason_fragment in exc_info.value.reason

    @pytest.mark.parametrize(
        "text",
        [
            "PRE/2024-25",
            "OS/PRE/2024-25/5/R1/R2",
            "XYZ/2024-25/5",
            "OS/PRE/2024-25",
            "PRE/2024-25/5/X1",
        ],
    )
    def test_malformed_contract(self, text):
        with pytest.raises(MalformedDocumentNumberError):
            DocumentNumber.parse(text, DocumentKind.CONTRACT)


class TestRevisionChain:
    def test_quotation_chain(self):
        number = DocumentNumber.parse("EPPL/ATT/QTN/2024-25/12", "quotation")
        first = number.revised()
        assert str(first) == "EPPL/ATT/QTN/2024-25/12/R1"
        assert str(first.revised()) == "EPPL/ATT/QTN/2024-25/12/R2"

    def test_contract_inserts_r1(self):
        assert str(DocumentNumber.parse("PRE/2024-25/7", "contract").revised()) == "PRE/2024-25/7/R1"

    def test_organizational_contract_increments(self):
        number = DocumentNumber.parse("OS/PRE/2024-25/7/R1", "contract")
        assert str(number.revised()) == "OS/PRE/2024-25/7/R2"

    def test_revision_does_not_change_base(self):
        number = DocumentNumber.parse("PRE/2024-25/7/R4", "contract")
        assert number.revised().base == number.base


class TestLegacyRevise:
    def test_quotation_appends_r1(self):
        assert legacy_revise("EPPL/ATT/QTN/2024-25", "quotation") == "EPPL/ATT/QTN/2024-25/R1"

    def test_quotation_bumps_sixth_segment(self):
        assert legacy_revise("X/ATT/QTN/2024-25/12/R4", "quotation") == "X/ATT/QTN/2024-25/12/R5"

    def test_contract_three_segments_never_prefixed(self):
        assert legacy_revise("OS/PRE/2024-25", "contract") == "OS/PRE/2024-25/R1"

    def test_contract_prefixed_slot(self):
        assert legacy_revise("OS/PRE/24-25/9", "contract") == "OS/PRE/24-25/9/R1"
        assert legacy_revise("OS/PRE/24-25/9/R2", "contract") == "OS/PRE/24-25/9/R3"

    def test_contract_plain_slot_inserts_before_trailing(self):
        assert legacy_revise("PRE/24-25/9/extra", "contract") == "PRE/24-25/9/R1/extra"
