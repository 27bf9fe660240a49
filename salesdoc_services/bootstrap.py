"""
salesdoc_services.bootstrap -- Process start-up from configuration.

Configures structured logging at the configured level and initializes the
kernel engine from the database settings.
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from salesdoc_config import SalesDocConfig
from salesdoc_kernel.db.engine import create_tables, init_engine_from_url
from salesdoc_kernel.logging_config import configure_logging, get_logger

logger = get_logger("services.bootstrap")


def bootstrap(config: SalesDocConfig, *, create_schema: bool = False) -> Engine:
    """Configure logging and the engine; optionally create missing tables."""
    configure_logging(level=config.logging.level)

    db = config.database
    engine = init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
    )
    if create_schema:
        create_tables()

    logger.info(
        "salesdoc_bootstrapped",
        extra={"config_checksum": config.checksum, "create_schema": create_schema},
    )
    return engine
