"""
Error taxonomy for the back-office service.

Service functions raise these; the application turns them into JSON error
responses with the matching HTTP status code.
"""
from typing import Optional


class BackofficeError(Exception):
    """Base class for errors raised by service-layer operations."""
    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(BackofficeError):
    """Missing or malformed input."""
    status_code = 400


class NotFound(BackofficeError):
    """A sale, product or inventory record does not exist."""
    status_code = 404


class InsufficientStock(BackofficeError):
    """Requested quantity exceeds the stock on hand."""
    status_code = 400


class PersistenceError(BackofficeError):
    """Unexpected storage failure."""
    status_code = 500
