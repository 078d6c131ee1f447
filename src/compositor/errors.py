"""Exceptions raised by the proposal compositor."""

from typing import Optional


class CompositorError(Exception):
    """Base exception for compositor errors."""

    def __init__(
        self,
        message: str,
        document_id: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.document_id = document_id
        self.original_error = original_error
        super().__init__(message)


class InvalidLayoutError(CompositorError, ValueError):
    """Raised when a sites-per-page layout is not an integer >= 1."""

    pass


class PriceValidationError(CompositorError, ValueError):
    """Raised when a price-only edit holds a negative or non-numeric value."""

    def __init__(
        self,
        message: str,
        document_id: Optional[str] = None,
        invalid_values: Optional[dict] = None,
    ):
        self.invalid_values = invalid_values or {}
        super().__init__(message, document_id)


class PersistenceError(CompositorError):
    """Raised when the document store rejects an update."""

    pass


class DocumentNotFoundError(CompositorError, LookupError):
    """Raised when a proposal document does not exist."""

    pass


class SessionStateError(CompositorError):
    """Raised when an edit session operation is not allowed in its current state."""

    pass
