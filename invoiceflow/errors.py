"""
Error kinds raised by the invoice service.

Every error carries the HTTP status it maps to; the handlers registered in
``invoiceflow.main`` turn them into ``{"error": message}`` responses.
"""

from __future__ import annotations


class InvoiceFlowError(Exception):
    """Base class for errors that surface to API clients."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFound(InvoiceFlowError):
    status_code = 404


class MalformedRequest(InvoiceFlowError):
    status_code = 400


class StoreUnavailable(InvoiceFlowError):
    """The underlying key-value operation failed."""

    status_code = 500


class InvalidTransition(InvoiceFlowError):
    """A lifecycle action has no target from the invoice's current status."""

    status_code = 409
