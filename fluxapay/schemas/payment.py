"""FluxaPay Payment Monitor - Payment schemas.

Response models for the checkout status polling API.
"""

from enum import Enum

from pydantic import BaseModel, Field


class PublicPaymentStatus(str, Enum):
    """Payment status as shown to the checkout page."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    EXPIRED = "expired"
    FAILED = "failed"


class PaymentStatusResponse(BaseModel):
    """Response for payment status polling."""

    payment_id: str = Field(..., description="Payment id")
    status: PublicPaymentStatus = Field(..., description="Public payment status")
    timestamp: str = Field(
        ...,
        description=(
            "Confirmation time for confirmed payments, otherwise the last time the "
            "payment row was updated (ISO 8601, UTC)"
        ),
    )


class PaymentDetailResponse(BaseModel):
    """Payment details shown on the checkout page."""

    payment_id: str = Field(..., description="Payment id")
    amount: str = Field(..., description="Expected amount")
    currency: str = Field(..., description="Asset code")
    address: str | None = Field(default=None, description="Stellar deposit address")
    expires_at: str = Field(..., description="Payment expiration time (ISO 8601, UTC)")
    status: PublicPaymentStatus = Field(..., description="Public payment status")
    description: str | None = Field(default=None, description="Payment description")
    transaction_hash: str | None = Field(default=None, description="Settling transaction")


class PaymentErrorResponse(BaseModel):
    """Error response body."""

    success: bool = False
    error_code: str = Field(..., description="Machine readable error code")
    error_message: str = Field(..., description="Human readable error message")
