"""Models module - SQLModel database entities."""

from fluxapay.models.payment import TERMINAL_STATUSES, Payment, PaymentStatus

__all__ = [
    "Payment",
    "PaymentStatus",
    "TERMINAL_STATUSES",
]
