"""
Configuration schema.

Frozen dataclasses the YAML configuration is parsed into.  The loader
validates values before constructing them; these types hold no logic
beyond small conveniences.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any
from zoneinfo import ZoneInfo

# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection and pool settings for the document store."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class NumberingSettings:
    """Document numbering policy."""

    timezone: str = "Asia/Kolkata"  # fiscal-year resolution happens in this zone
    quotation_mint_max_attempts: int = 50
    strict_revision_grammar: bool = True

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SalesDocConfig:
    """Effective runtime configuration (defaults + file + environment)."""

    database: DatabaseSettings
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    numbering: NumberingSettings = field(default_factory=NumberingSettings)
    checksum: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("checksum")
        return data
