"""FluxaPay Payment Monitor - Custom exceptions."""

from typing import Any


class FluxaPayError(Exception):
    """Base exception for all FluxaPay errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class LedgerUnavailable(FluxaPayError):
    """Horizon could not be reached or returned an unusable response.

    Transient: the payment is retried on the next tick and nothing is written.
    """

    pass


class MalformedRecord(FluxaPayError):
    """A ledger record is missing fields or carries an unparseable amount."""

    pass


class PersistenceConflict(FluxaPayError):
    """The payment row changed since it was read (status or cursor)."""

    pass


class PaymentNotFound(FluxaPayError):
    """The payment no longer exists in the store."""

    def __init__(self, payment_id: str, message: str = "Payment not found") -> None:
        self.payment_id = payment_id
        super().__init__(message, {"payment_id": payment_id})


class UnsupportedAssetError(FluxaPayError):
    """The payment currency cannot be mapped to a ledger asset."""

    pass
