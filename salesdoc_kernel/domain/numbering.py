"""
Document numbering grammar (``salesdoc_kernel.domain.numbering``).

Responsibility
--------------
Owns the textual identifier grammar of every numbered series:

* Quotation -- ``EPPL/ATT/QTN/{fiscal_year}/{sequence}[/R{n}]``
* Contract  -- ``[OS/]PRE/{fiscal_year}/{sequence}[/R{n}]``

``DocumentNumber`` is the parsed form.  ``str(number)`` renders the
canonical text, ``DocumentNumber.parse`` is the only place that splits
identifiers, and ``number.revised()`` produces the next link of the
revision chain.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Quotation identifiers have 5 segments, or 6 when revised.
* Contract identifiers have 3 segments (4 with the ``OS`` prefix), plus one
  when revised.  A 3-segment identifier is never treated as prefixed.
* Revision tokens are ``R`` followed by a positive integer.
* The document subtype never changes the identifier text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum

from salesdoc_kernel.domain.fiscal_year import parse_fiscal_year
from salesdoc_kernel.exceptions import (
    MalformedDocumentNumberError,
    MalformedFiscalYearError,
    UnknownDocumentKindError,
)


class DocumentKind(str, Enum):
    """Numbered root documents.  The value doubles as the counter series key."""

    QUOTATION = "quotation"
    CONTRACT = "contract"

    @property
    def series_key(self) -> str:
        return self.value

    @classmethod
    def coerce(cls, value: "DocumentKind | str") -> "DocumentKind":
        try:
            return cls(value)
        except ValueError:
            raise UnknownDocumentKindError(str(value)) from None


QUOTATION_PREFIX: tuple[str, ...] = ("EPPL", "ATT", "QTN")
CONTRACT_PREFIX = "PRE"
ORGANIZATIONAL_PREFIX = "OS"
SEPARATOR = "/"

_REVISION_RE = re.compile(r"^R([1-9]\d*)$")
_SEQUENCE_RE = re.compile(r"^\d+$")


def format_document_number(
    kind: DocumentKind | str,
    fiscal_year: str,
    sequence: int,
    organizational: bool = False,
) -> str:
    """Render a freshly minted (unrevised) identifier.

    ``organizational`` only affects contracts.
    """
    return str(DocumentNumber(DocumentKind.coerce(kind), fiscal_year, sequence, organizational))


@dataclass(frozen=True)
class DocumentNumber:
    """Parsed document identifier.

    ``revision`` is None for the base number and ``n`` for the ``R{n}``
    revision.  ``organizational`` is always False for quotations.
    """

    kind: DocumentKind
    fiscal_year: str
    sequence: int
    organizational: bool = False
    revision: int | None = None

    def __post_init__(self) -> None:
        if self.kind is DocumentKind.QUOTATION and self.organizational:
            object.__setattr__(self, "organizational", False)

    @property
    def base(self) -> "DocumentNumber":
        """The unrevised number this revision chain started from."""
        return replace(self, revision=None)

    def revised(self) -> "DocumentNumber":
        """Next link of the revision chain (R1 for a base number)."""
        return replace(self, revision=(self.revision or 0) + 1)

    def segments(self) -> list[str]:
        if self.kind is DocumentKind.QUOTATION:
            parts = [*QUOTATION_PREFIX]
        elif self.organizational:
            parts = [ORGANIZATIONAL_PREFIX, CONTRACT_PREFIX]
        else:
            parts = [CONTRACT_PREFIX]
        parts += [self.fiscal_year, str(self.sequence)]
        if self.revision is not None:
            parts.append(f"R{self.revision}")
        return parts

    def __str__(self) -> str:
        return SEPARATOR.join(self.segments())

    @classmethod
    def parse(cls, text: str, kind: DocumentKind | str) -> "DocumentNumber":
        """Parse ``text`` under the grammar of ``kind``.

        Raises:
            MalformedDocumentNumberError: with the reason the text was rejected.
        """
        kind = DocumentKind.coerce(kind)
        if not text:
            raise MalformedDocumentNumberError(kind.value, text or "", "empty identifier")
        parts = text.split(SEPARATOR)

        if kind is DocumentKind.QUOTATION:
            if len(parts) not in (5, 6):
                raise MalformedDocumentNumberError(
                    kind.value, text, f"expected 5 or 6 segments, found {len(parts)}"
                )
            if tuple(parts[:3]) != QUOTATION_PREFIX:
                raise MalformedDocumentNumberError(
                    kind.value, text, f"expected prefix {SEPARATOR.join(QUOTATION_PREFIX)}"
                )
            organizational = False
            body = parts[3:]
        else:
            organizational = len(parts) != 3 and parts[0] == ORGANIZATIONAL_PREFIX
            body = parts[1:] if organizational else parts
            if len(body) not in (3, 4):
                raise MalformedDocumentNumberError(
                    kind.value, text, f"unexpected segment count {len(parts)}"
                )
            if body[0] != CONTRACT_PREFIX:
                raise MalformedDocumentNumberError(
                    kind.value, text, f"expected series marker {CONTRACT_PREFIX}"
                )
            body = body[1:]

        fiscal_year, sequence = body[0], body[1]
        try:
            parse_fiscal_year(fiscal_year)
        except MalformedFiscalYearError:
            raise MalformedDocumentNumberError(
                kind.value, text, f"bad fiscal year '{fiscal_year}'"
            ) from None
        if not _SEQUENCE_RE.match(sequence):
            raise MalformedDocumentNumberError(kind.value, text, f"bad sequence '{sequence}'")

        revision = None
        if len(body) == 3:
            match = _REVISION_RE.match(body[2])
            if match is None:
                raise MalformedDocumentNumberError(
                    kind.value, text, f"bad revision token '{body[2]}'"
                )
            revision = int(match.group(1))

        return cls(
            kind=kind,
            fiscal_year=fiscal_year,
            sequence=int(sequence),
            organizational=organizational,
            revision=revision,
        )


# ---------------------------------------------------------------------------
# Lenient positional rewrite
# ---------------------------------------------------------------------------


def _bump_revision_token(token: str) -> str:
    digits = re.match(r"\d+", token[1:])
    return f"R{int(digits.group(0)) + 1 if digits else 1}"


def legacy_revise(text: str, kind: DocumentKind | str) -> str:
    """Positional revision for identifiers that do not parse.

    Quotations: bump segment 5 when there are exactly 6 segments and it
    starts with ``R``, otherwise append ``/R1``.  Contracts: the slot is
    index 4 when segment 0 is ``OS`` (never for 3 segments), else index 3;
    an ``R`` token there is bumped, otherwise ``R1`` is inserted.
    """
    kind = DocumentKind.coerce(kind)
    parts = text.split(SEPARATOR)

    if kind is DocumentKind.QUOTATION:
        if len(parts) == 6 and parts[5].startswith("R"):
            parts[5] = _bump_revision_token(parts[5])
            return SEPARATOR.join(parts)
        return f"{text}{SEPARATOR}R1"

    has_prefix = False if len(parts) == 3 else parts[0] == ORGANIZATIONAL_PREFIX
    slot = 4 if has_prefix else 3
    if len(parts) > slot and parts[slot].startswith("R"):
        parts[slot] = _bump_revision_token(parts[slot])
    else:
        parts.insert(slot, "R1")
    return SEPARATOR.join(parts)
