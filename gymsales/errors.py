# Overview: Exception hierarchy for the sales engine; routes map each kind to an HTTP status.

from __future__ import annotations


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class SaleNotFoundError(SaleError):
    """404-level: sale, payment method or customer absent in the gym."""


class SaleValidationError(SaleError):
    """400-level: input or line-item problems; the caller must fix and resubmit."""


class InsufficientStockError(SaleValidationError):
    """A guarded stock update found less stock than the delta requires."""


class SaleConflictError(SaleError):
    """409-level: sale number collision that survived every retry."""
