"""
Configuration Loader (``salesdoc_config.loader``).

Responsibility
--------------
Reads YAML configuration files, merges them over the bundled defaults,
applies environment overrides and parses the result into the frozen
``salesdoc_config.schema`` dataclasses.  Runtime callers go through
``salesdoc_config.get_active_config()`` instead of calling this module.

Invariants enforced
-------------------
* Every value is validated before a dataclass is built; a bad value raises
  ``ConfigurationError`` naming the dotted key.
* Unknown sections and unknown keys are rejected, not ignored.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  effective configuration.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from salesdoc_config.schema import (
    DatabaseSettings,
    LoggingSettings,
    NumberingSettings,
    SalesDocConfig,
)
from salesdoc_kernel.exceptions import ConfigurationError

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

ENV_DATABASE_URL = "SALESDOC_DATABASE_URL"
ENV_LOG_LEVEL = "SALESDOC_LOG_LEVEL"

_SECTIONS = ("database", "logging", "numbering")

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), type(data).__name__, "top level must be a mapping")
    return data


def merge_sections(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` over ``base`` one section deep."""
    merged = {name: dict(values or {}) for name, values in base.items()}
    for name, values in override.items():
        if name not in _SECTIONS:
            raise ConfigurationError(name, values, "unknown configuration section")
        if not isinstance(values, Mapping):
            raise ConfigurationError(name, values, "section must be a mapping")
        merged.setdefault(name, {}).update(values)
    return merged


def apply_env_overrides(data: Mapping[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    merged = {name: dict(values or {}) for name, values in data.items()}
    if environ.get(ENV_DATABASE_URL):
        merged.setdefault("database", {})["url"] = environ[ENV_DATABASE_URL]
    if environ.get(ENV_LOG_LEVEL):
        merged.setdefault("logging", {})["level"] = environ[ENV_LOG_LEVEL]
    return merged


# ---------------------------------------------------------------------------
# Value checks
# ---------------------------------------------------------------------------


def _require_keys(section: str, data: Mapping[str, Any], allowed: set[str]) -> None:
    for key in data:
        if key not in allowed:
            raise ConfigurationError(f"{section}.{key}", data[key], "unknown key")


def _positive_int(key: str, value: Any) -> int:
    # bool is an int subclass.
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(key, value, "must be a positive integer")
    return value


def _non_negative_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(key, value, "must be a non-negative integer")
    return value


def _boolean(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(key, value, "must be true or false")
    return value


# ---------------------------------------------------------------------------
# Section parsers
# ---------------------------------------------------------------------------


def parse_database(data: Mapping[str, Any]) -> DatabaseSettings:
    _require_keys("database", data, {"url", "echo", "pool_size", "max_overflow", "pool_timeout"})
    url = data.get("url")
    if not isinstance(url, str) or not url.strip():
        raise ConfigurationError("database.url", url, "must be a non-empty string")
    return DatabaseSettings(
        url=url.strip(),
        echo=_boolean("database.echo", data.get("echo", False)),
        pool_size=_positive_int("database.pool_size", data.get("pool_size", 20)),
        max_overflow=_non_negative_int("database.max_overflow", data.get("max_overflow", 10)),
        pool_timeout=_positive_int("database.pool_timeout", data.get("pool_timeout", 30)),
    )


def parse_logging(data: Mapping[str, Any]) -> LoggingSettings:
    _require_keys("logging", data, {"level"})
    level = data.get("level", "INFO")
    if not isinstance(level, str) or level.upper() not in _LOG_LEVELS:
        raise ConfigurationError("logging.level", level, f"must be one of {', '.join(_LOG_LEVELS)}")
    return LoggingSettings(level=level.upper())


def parse_numbering(data: Mapping[str, Any]) -> NumberingSettings:
    _require_keys(
        "numbering", data, {"timezone", "quotation_mint_max_attempts", "strict_revision_grammar"}
    )
    tz_name = data.get("timezone", "Asia/Kolkata")
    if not isinstance(tz_name, str):
        raise ConfigurationError("numbering.timezone", tz_name, "must be an IANA zone name")
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError("numbering.timezone", tz_name, "unknown time zone") from exc

    return NumberingSettings(
        timezone=tz_name,
        quotation_mint_max_attempts=_positive_int(
            "numbering.quotation_mint_max_attempts",
            data.get("quotation_mint_max_attempts", 50),
        ),
        strict_revision_grammar=_boolean(
            "numbering.strict_revision_grammar",
            data.get("strict_revision_grammar", True),
        ),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_config(data: Mapping[str, Any]) -> SalesDocConfig:
    """Build a ``SalesDocConfig`` from merged section dicts."""
    for name in data:
        if name not in _SECTIONS:
            raise ConfigurationError(name, data[name], "unknown configuration section")

    config = SalesDocConfig(
        database=parse_database(data.get("database") or {}),
        logging=parse_logging(data.get("logging") or {}),
        numbering=parse_numbering(data.get("numbering") or {}),
    )
    return SalesDocConfig(
        database=config.database,
        logging=config.logging,
        numbering=config.numbering,
        checksum=compute_checksum(config.to_dict()),
    )


def load_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> SalesDocConfig:
    """Defaults, then ``config_path`` (if given), then environment overrides."""
    data = load_yaml_file(DEFAULTS_PATH)
    if config_path is not None:
        data = merge_sections(data, load_yaml_file(Path(config_path)))
    if environ is not None:
        data = apply_env_overrides(data, environ)
    return parse_config(data)
