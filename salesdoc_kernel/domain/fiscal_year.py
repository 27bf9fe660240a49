"""
Fiscal year resolution (``salesdoc_kernel.domain.fiscal_year``).

The financial year runs April to March.  A date in April-December belongs
to the year starting that calendar year; January-March belongs to the year
that started the previous calendar year.  Labels are ``"{start}-{end:02d}"``
where ``end`` is the last two digits of the closing calendar year, e.g.
``"2024-25"``.

Pure functions, zero I/O.
"""

from __future__ import annotations

import re
from datetime import date

from salesdoc_kernel.exceptions import MalformedFiscalYearError

FISCAL_YEAR_START_MONTH = 4

_LABEL_RE = re.compile(r"^(\d{4})-(\d{2})$")


def fiscal_year_start(day: date) -> int:
    """Calendar year in which the fiscal year containing ``day`` began."""
    if day.month >= FISCAL_YEAR_START_MONTH:
        return day.year
    return day.year - 1


def fiscal_year_for(day: date) -> str:
    """Return the fiscal year label for ``day``.

    >>> fiscal_year_for(date(2024, 4, 1))
    '2024-25'
    >>> fiscal_year_for(date(2025, 3, 31))
    '2024-25'
    """
    start = fiscal_year_start(day)
    return f"{start}-{(start + 1) % 100:02d}"


def parse_fiscal_year(label: str) -> int:
    """Validate a label and return its starting calendar year.

    Raises:
        MalformedFiscalYearError: if ``label`` is not ``YYYY-YY`` or the
            two years are not consecutive.
    """
    match = _LABEL_RE.match(label)
    if match is None:
        raise MalformedFiscalYearError(label)
    start = int(match.group(1))
    if (start + 1) % 100 != int(match.group(2)):
        raise MalformedFiscalYearError(label)
    return start


def fiscal_year_bounds(label: str) -> tuple[date, date]:
    """First and last calendar day covered by ``label``."""
    start = parse_fiscal_year(label)
    return (
        date(start, FISCAL_YEAR_START_MONTH, 1),
        date(start + 1, FISCAL_YEAR_START_MONTH - 1, 31),
    )
