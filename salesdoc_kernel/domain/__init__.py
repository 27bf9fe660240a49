"""Pure domain layer: clock, fiscal years, numbering grammar and lifecycle states."""

from salesdoc_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from salesdoc_kernel.domain.fiscal_year import (
    fiscal_year_bounds,
    fiscal_year_for,
    parse_fiscal_year,
)
from salesdoc_kernel.domain.lifecycle import DocumentState, require_transition
from salesdoc_kernel.domain.numbering import (
    DocumentKind,
    DocumentNumber,
    format_document_number,
    legacy_revise,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "fiscal_year_for",
    "fiscal_year_bounds",
    "parse_fiscal_year",
    "DocumentState",
    "require_transition",
    "DocumentKind",
    "DocumentNumber",
    "format_document_number",
    "legacy_revise",
]
