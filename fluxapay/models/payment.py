"""FluxaPay Payment Monitor - Payment model."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from fluxapay.utils.helpers import utc_now


class PaymentStatus(str, Enum):
    """Payment status.

    State transitions:
    - pending -> paid / expired / failed
    Terminal states never revert.
    """

    PENDING = "pending"  # Awaiting funds on the deposit address
    PAID = "paid"  # Matching funds observed on-ledger
    EXPIRED = "expired"  # Expiration passed without settlement
    FAILED = "failed"  # Cannot be settled (e.g. unsupported currency)


TERMINAL_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.EXPIRED, PaymentStatus.FAILED})

# Stored as the enum value so rows stay readable outside the application
PAYMENT_STATUS_TYPE = sa.Enum(
    PaymentStatus,
    name="payment_status",
    native_enum=False,
    length=20,
    values_callable=lambda enum: [member.value for member in enum],
)


class Payment(SQLModel, table=True):
    """Payment awaiting (or having received) on-ledger funds.

    Rows are created by the invoice flow in ``pending`` state. The monitor is
    the only writer of ``status`` and ``last_paging_token`` and always writes
    both through a conditional update.

    Attributes:
        id: Opaque payment identifier
        merchant_id: Owning merchant
        amount: Expected amount in ``currency``
        currency: Asset code (e.g., 'USDC', 'XLM')
        stellar_address: Deposit account watched on the ledger
        expiration: Time after which the payment is no longer reconciled
        status: Payment status
        last_paging_token: Highest Horizon paging token already inspected

        # Settlement evidence
        transaction_hash: Hash of the settling ledger transaction
        amount_received: Amount of the settling ledger payment
        confirmed_at: Settlement time
    """

    __tablename__ = "payments"

    id: str = Field(primary_key=True, max_length=64)
    merchant_id: str | None = Field(default=None, max_length=64, index=True)

    amount: Decimal = Field(
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False),
        description="Expected amount",
    )
    currency: str = Field(max_length=12, description="Asset code (uppercase)")
    stellar_address: str | None = Field(
        default=None,
        max_length=56,
        description="Deposit account on the Stellar ledger",
    )
    # Timestamps are naive UTC (see utc_now); columns are declared without timezone
    expiration: datetime = Field(
        sa_column=sa.Column(sa.DateTime(), nullable=False, index=True),
        description="Payment expiration time (naive UTC)",
    )

    status: PaymentStatus = Field(
        default=PaymentStatus.PENDING,
        sa_column=sa.Column(
            PAYMENT_STATUS_TYPE,
            nullable=False,
            index=True,
            default=PaymentStatus.PENDING,
        ),
    )
    last_paging_token: str | None = Field(
        default=None,
        max_length=64,
        description="Resumption cursor for the ledger scan",
    )

    transaction_hash: str | None = Field(default=None, max_length=64)
    amount_received: Decimal | None = Field(
        default=None,
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=True),
    )
    confirmed_at: datetime | None = Field(
        default=None,
        sa_column=sa.Column(sa.DateTime(), nullable=True),
    )

    description: str | None = Field(default=None, max_length=500)
    customer_email: str | None = Field(default=None, max_length=255)

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=sa.Column(sa.DateTime(), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=sa.Column(sa.DateTime(), nullable=False),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
