"""FluxaPay Payment Monitor - Payment status API routes.

Read-only endpoints polled by the checkout page (every ~3 seconds). They
never mutate payment state.
"""

from fastapi import APIRouter, HTTPException, status

from fluxapay.api.deps import StatusService
from fluxapay.core.exceptions import PaymentNotFound
from fluxapay.schemas.payment import (
    PaymentDetailResponse,
    PaymentErrorResponse,
    PaymentStatusResponse,
)
from fluxapay.services.status_service import to_public_status
from fluxapay.utils.helpers import format_utc_datetime

router = APIRouter(prefix="/payments", tags=["payments"])


def _not_found(payment_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "success": False,
            "error_code": "PAYMENT_NOT_FOUND",
            "error_message": f"Payment {payment_id} not found",
        },
    )


@router.get(
    "/{payment_id}/status",
    response_model=PaymentStatusResponse,
    responses={404: {"model": PaymentErrorResponse}},
    summary="Poll payment status",
)
async def get_payment_status(payment_id: str, service: StatusService):
    """Get the public status of a payment.

    Status values: pending, confirmed, expired, failed.
    """
    try:
        view = await service.get_status(payment_id)
    except PaymentNotFound:
        raise _not_found(payment_id) from None

    return PaymentStatusResponse(
        payment_id=view.payment_id,
        status=view.status,
        timestamp=format_utc_datetime(view.timestamp),
    )


@router.get(
    "/{payment_id}",
    response_model=PaymentDetailResponse,
    responses={404: {"model": PaymentErrorResponse}},
    summary="Get payment details",
)
async def get_payment(payment_id: str, service: StatusService):
    """Get payment details for the checkout page."""
    try:
        payment = await service.get_payment(payment_id)
    except PaymentNotFound:
        raise _not_found(payment_id) from None

    return PaymentDetailResponse(
        payment_id=payment.id,
        amount=str(payment.amount),
        currency=payment.currency,
        address=payment.stellar_address,
        expires_at=format_utc_datetime(payment.expiration),
        status=to_public_status(payment.status),
        description=payment.description,
        transaction_hash=payment.transaction_hash,
    )
