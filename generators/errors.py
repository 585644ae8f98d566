"""
Exception types raised by the invoice generation pipeline.
"""
from __future__ import annotations


class InvoiceError(Exception):
    """Base class for all invoice generation errors."""


class InvalidArgumentError(InvoiceError, ValueError):
    """A calculator or formatter received a non-numeric or out-of-range value."""


class InvoiceValidationError(InvoiceError, ValueError):
    """Required invoice data is missing, so no document can be produced."""

    user_message = "Cannot generate PDF: missing data"

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"{self.user_message} ({', '.join(self.missing)})")


class LogoFetchError(InvoiceError):
    """The company logo could not be downloaded."""


class RasterizationError(InvoiceError, RuntimeError):
    """The markup could not be turned into page images or a PDF."""

    user_message = "Failed to generate PDF"
