"""Schemas module - Pydantic DTOs for responses."""

from fluxapay.schemas.payment import (
    PaymentDetailResponse,
    PaymentErrorResponse,
    PaymentStatusResponse,
    PublicPaymentStatus,
)

__all__ = [
    "PaymentDetailResponse",
    "PaymentErrorResponse",
    "PaymentStatusResponse",
    "PublicPaymentStatus",
]
