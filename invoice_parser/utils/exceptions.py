"""
Custom Exceptions Module.

This module defines the exceptions raised inside the invoice parser.
Only pipeline-level failures travel as exceptions; data-quality findings
are reported as validation issues attached to the parsed invoice.

Exception Hierarchy:
    InvoiceParserError (base)
    ├── EmptyInputError
    ├── StructuralMismatchError
    ├── CriticalError
    │   └── DocumentAccessError
    ├── RecoverableError
    │   └── RoutingError
    └── BuilderFinalizedError
"""


class InvoiceParserError(Exception):
    """
    Base exception for all invoice parser errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CLASSIFICATION ERRORS
# =============================================================================

class EmptyInputError(InvoiceParserError):
    """Raised when a blank document reaches the format classifier."""

    def __init__(self, stage: str = "classification"):
        message = "Cannot classify empty text"
        details = {"stage": stage}
        super().__init__(message, details)


# =============================================================================
# FIELD ERRORS
# =============================================================================

class StructuralMismatchError(InvoiceParserError):
    """
    Raised when a field candidate fails its shape check.

    Strategies catch this themselves and treat it as "no match".

    Example:
        >>> raise StructuralMismatchError("order_number", "12-4567890-1234567")
    """

    def __init__(self, field: str, candidate: str, reason: str = None):
        message = f"Candidate for '{field}' failed shape validation"
        details = {"field": field, "candidate": candidate, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# PIPELINE ERRORS
# =============================================================================

class CriticalError(InvoiceParserError):
    """Unrecoverable failure, typically input or file access."""
    pass


class DocumentAccessError(CriticalError):
    """Raised when the source document cannot be read."""

    def __init__(self, source: str, reason: str = None):
        message = f"File not found or unreadable: {source}"
        details = {"source": source, "reason": reason}
        super().__init__(message, details)


class RecoverableError(InvoiceParserError):
    """Failure that field-by-field recovery may still salvage."""
    pass


class RoutingError(RecoverableError):
    """Raised when no parser variant can be resolved for a document."""

    def __init__(self, route_key: tuple):
        message = "No parser variant registered for route"
        details = {"route": route_key}
        super().__init__(message, details)


# =============================================================================
# ASSEMBLY ERRORS
# =============================================================================

class BuilderFinalizedError(InvoiceParserError):
    """Raised when an invoice builder is modified after build()."""

    def __init__(self, field_name: str):
        message = "Invoice already built; refusing further changes"
        details = {"field": field_name}
        super().__init__(message, details)


__all__ = [
    'InvoiceParserError',
    'EmptyInputError',
    'StructuralMismatchError',
    'CriticalError',
    'DocumentAccessError',
    'RecoverableError',
    'RoutingError',
    'BuilderFinalizedError',
]
