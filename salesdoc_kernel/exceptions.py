"""
Typed Exception Hierarchy for the Sales Document Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from SalesDocKernelError:

    SalesDocKernelError (base)
    |
    +-- DocumentError
    |   +-- DocumentNotFoundError
    |   +-- UnknownDocumentKindError
    |
    +-- NumberingError
    |   +-- MalformedDocumentNumberError
    |   +-- MalformedFiscalYearError
    |   +-- DocumentNumberCollisionError
    |
    +-- LifecycleError
    |   +-- InvalidStateTransitionError
    |
    +-- StoreFailureError
    |   +-- CascadeDeletionError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Document        | DOCUMENT_NOT_FOUND          | Quotation/contract id doesn't exist
                | UNKNOWN_DOCUMENT_KIND       | Kind is not quotation or contract
----------------|-----------------------------|-----------------------------------------
Numbering       | MALFORMED_DOCUMENT_NUMBER   | Identifier doesn't match series grammar
                | MALFORMED_FISCAL_YEAR       | Label isn't YYYY-YY with consecutive years
                | DOCUMENT_NUMBER_COLLISION   | Quotation mint retries exhausted
----------------|-----------------------------|-----------------------------------------
Lifecycle       | INVALID_STATE_TRANSITION    | e.g. approved -> draft
----------------|-----------------------------|-----------------------------------------
Store           | STORE_FAILURE               | Underlying persistence error
                | CASCADE_DELETION_FAILED     | A cascade step failed; root kept
----------------|-----------------------------|-----------------------------------------
Config          | CONFIGURATION_ERROR         | Invalid YAML value or override

===============================================================================
HANDLING PATTERNS
===============================================================================

1. CATCH SPECIFIC EXCEPTIONS:

    try:
        revision_service.revise(DocumentKind.CONTRACT, contract_id)
    except MalformedDocumentNumberError as e:
        log.warning(f"Cannot revise {e.document_number} ({e.reason})")

2. USE STRUCTURED DATA (not message parsing):

    except CascadeDeletionError as e:
        return {
            "error": e.code,
            "document_id": e.document_id,
            "step": e.step,
        }

3. STORE FAILURES PRESERVE THE CAUSE:

    except StoreFailureError as e:
        log.error(e.operation, exc_info=e.__cause__)
"""

from typing import Any


class SalesDocKernelError(Exception):
    """
    Base exception for all sales document kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SALESDOC_KERNEL_ERROR"


# Document-related exceptions


class DocumentError(SalesDocKernelError):
    """Base exception for root-document errors."""

    code: str = "DOCUMENT_ERROR"


class DocumentNotFoundError(DocumentError):
    """Quotation or contract with given ID was not found."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_kind: str, document_id: str):
        self.document_kind = document_kind
        self.document_id = document_id
        super().__init__(f"{document_kind} not found: {document_id}")


class UnknownDocumentKindError(DocumentError):
    """Document kind is not one of the numbered root documents."""

    code: str = "UNKNOWN_DOCUMENT_KIND"

    def __init__(self, document_kind: str):
        self.document_kind = document_kind
        super().__init__(f"Unknown document kind: {document_kind!r}")


# Numbering-related exceptions


class NumberingError(SalesDocKernelError):
    """Base exception for document numbering errors."""

    code: str = "NUMBERING_ERROR"


class MalformedDocumentNumberError(NumberingError):
    """
    Identifier does not match the positional grammar of its series.

    Raised by DocumentNumber.parse().  In lenient revision mode the
    revision service logs this condition and falls back to the legacy
    positional rewrite instead of propagating it.
    """

    code: str = "MALFORMED_DOCUMENT_NUMBER"

    def __init__(self, document_kind: str, document_number: str, reason: str):
        self.document_kind = document_kind
        self.document_number = document_number
        self.reason = reason
        super().__init__(
            f"Malformed {document_kind} number '{document_number}': {reason}"
        )


class MalformedFiscalYearError(NumberingError):
    """Fiscal year label is not of the form YYYY-YY with consecutive years."""

    code: str = "MALFORMED_FISCAL_YEAR"

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"Malformed fiscal year label: '{label}'")


class DocumentNumberCollisionError(NumberingError):
    """Every freshly minted number already existed on another document."""

    code: str = "DOCUMENT_NUMBER_COLLISION"

    def __init__(self, series_key: str, document_id: str, attempts: int, last_number: str):
        self.series_key = series_key
        self.document_id = document_id
        self.attempts = attempts
        self.last_number = last_number
        super().__init__(
            f"Could not mint a free {series_key} number for {document_id} "
            f"after {attempts} attempts (last tried {last_number})"
        )


# Lifecycle-related exceptions


class LifecycleError(SalesDocKernelError):
    """Base exception for document lifecycle errors."""

    code: str = "LIFECYCLE_ERROR"


class InvalidStateTransitionError(LifecycleError):
    """Requested state change is not an edge of the lifecycle machine."""

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid document transition: {from_state} -> {to_state}")


# Store-related exceptions


class StoreFailureError(SalesDocKernelError):
    """
    An underlying persistence call failed.

    The original SQLAlchemy exception is chained as ``__cause__``.
    """

    code: str = "STORE_FAILURE"

    def __init__(self, operation: str, **context: Any):
        self.operation = operation
        self.context = context
        detail = ", ".join(f"{k}={v}" for k, v in context.items())
        super().__init__(
            f"Store operation '{operation}' failed" + (f" ({detail})" if detail else "")
        )


class CascadeDeletionError(StoreFailureError):
    """
    A cascade step failed and the root deletion did not proceed.

    Every deletion already issued for this cascade has been rolled back
    to the savepoint taken before the first step.
    """

    code: str = "CASCADE_DELETION_FAILED"

    def __init__(self, document_kind: str, document_id: str, step: str):
        self.document_kind = document_kind
        self.document_id = document_id
        self.step = step
        super().__init__(
            "cascade_delete",
            document_kind=document_kind,
            document_id=document_id,
            step=step,
        )


# Configuration-related exceptions


class ConfigurationError(SalesDocKernelError):
    """Configuration file or override holds an invalid value."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, value: Any, reason: str):
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid configuration {key}={value!r}: {reason}")
