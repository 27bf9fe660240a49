"""
salesdoc_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration.  Sits above ``salesdoc_kernel`` and below
    ``salesdoc_services``.  The kernel MUST NEVER import from
    ``salesdoc_config``; services translate settings into constructor
    arguments.

Failure modes:
    - ``FileNotFoundError`` -- ``config_path`` does not exist.
    - ``ConfigurationError`` -- a value fails validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``SALESDOC_CONFIG_TRACE`` log entry with the checksum of the effective
    configuration, so every minted number can be tied back to the
    numbering policy in force.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from salesdoc_config.loader import load_config
from salesdoc_config.schema import (
    DatabaseSettings,
    LoggingSettings,
    NumberingSettings,
    SalesDocConfig,
)

_logger = logging.getLogger("salesdoc_kernel.config")


def get_active_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> SalesDocConfig:
    """The ONLY public configuration entrypoint.

    Layers, lowest precedence first: bundled ``defaults.yaml``, the file at
    ``config_path``, then ``SALESDOC_DATABASE_URL`` / ``SALESDOC_LOG_LEVEL``
    from ``environ`` (``os.environ`` when omitted).

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ConfigurationError: If any value is invalid.
    """
    config = load_config(
        Path(config_path) if config_path is not None else None,
        os.environ if environ is None else environ,
    )

    _logger.info(
        "SALESDOC_CONFIG_TRACE",
        extra={
            "trace_type": "SALESDOC_CONFIG_TRACE",
            "checksum": config.checksum,
            "config_path": str(config_path) if config_path is not None else None,
            "timezone": config.numbering.timezone,
            "quotation_mint_max_attempts": config.numbering.quotation_mint_max_attempts,
            "strict_revision_grammar": config.numbering.strict_revision_grammar,
        },
    )
    return config


__all__ = [
    "DatabaseSettings",
    "LoggingSettings",
    "NumberingSettings",
    "SalesDocConfig",
    "get_active_config",
]
