"""
Module: salesdoc_kernel.db.errors
Responsibility: Translate SQLAlchemy errors raised by store calls into
    StoreFailureError carrying the operation name and identifying context.
"""

from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy.exc import SQLAlchemyError

from salesdoc_kernel.exceptions import StoreFailureError


@contextmanager
def store_operation(operation: str, **context: Any) -> Generator[None, None, None]:
    """Re-raise any SQLAlchemyError inside the block as StoreFailureError.

    The original exception is chained; domain errors pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreFailureError(operation, **context) from exc
