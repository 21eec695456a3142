"""Status Service - public projection of payment state for checkout polling."""

from dataclasses import dataclass
from datetime import datetime

from fluxapay.core.exceptions import PaymentNotFound
from fluxapay.models.payment import Payment, PaymentStatus
from fluxapay.schemas.payment import PublicPaymentStatus
from fluxapay.services.payment_store import PaymentStore

PUBLIC_STATUS = {
    PaymentStatus.PENDING: PublicPaymentStatus.PENDING,
    PaymentStatus.PAID: PublicPaymentStatus.CONFIRMED,
    PaymentStatus.EXPIRED: PublicPaymentStatus.EXPIRED,
    PaymentStatus.FAILED: PublicPaymentStatus.FAILED,
}


def to_public_status(status: PaymentStatus) -> PublicPaymentStatus:
    """Map an internal payment status to the public enum."""
    return PUBLIC_STATUS[PaymentStatus(status)]


@dataclass
class PaymentStatusView:
    """Public status of a payment."""

    payment_id: str
    status: PublicPaymentStatus
    timestamp: datetime


class PaymentStatusService:
    """Read-only status lookups. Always reads the committed row."""

    def __init__(self, store: PaymentStore):
        self._store = store

    async def get_payment(self, payment_id: str) -> Payment:
        """Get a payment or raise PaymentNotFound."""
        payment = await self._store.get(payment_id)
        if payment is None:
            raise PaymentNotFound(payment_id)
        return payment

    async def get_status(self, payment_id: str) -> PaymentStatusView:
        """Get the public status of a payment.

        The timestamp is the confirmation time for settled payments and the
        last update time otherwise.

        Raises:
            PaymentNotFound: Unknown payment id
        """
        payment = await self.get_payment(payment_id)
        timestamp = payment.confirmed_at if payment.confirmed_at else payment.updated_at
        return PaymentStatusView(
            payment_id=payment.id,
            status=to_public_status(payment.status),
            timestamp=timestamp,
        )
