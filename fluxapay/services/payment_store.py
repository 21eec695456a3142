"""Payment Store - persistence access for monitored payments.

Every write is a single conditional UPDATE keyed by payment id that only
applies while the row is still ``pending`` and still carries the paging token
the caller read. A row that changed in between raises PersistenceConflict
instead of being overwritten.
"""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from fluxapay.core.exceptions import PaymentNotFound, PersistenceConflict
from fluxapay.ledger.base import is_newer_token
from fluxapay.models.payment import Payment, PaymentStatus
from fluxapay.utils.helpers import format_utc_datetime, utc_now

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class PaymentStore:
    """Read and conditionally update payment rows.

    Args:
        session_scope: Factory of session context managers that commit on
            successful exit (e.g. ``fluxapay.db.get_session``)
    """

    def __init__(self, session_scope: SessionScope):
        self._session_scope = session_scope

    # ============ Queries ============

    async def find_eligible(self, now: datetime) -> list[Payment]:
        """Get payments the monitor should scan.

        Eligible: pending, not yet expired, with a deposit address.

        Args:
            now: Current time (naive UTC)

        Returns:
            Point-in-time snapshot of eligible payments
        """
        async with self._session_scope() as db:
            result = await db.execute(
                select(Payment).where(
                    Payment.status == PaymentStatus.PENDING,
                    Payment.expiration > now,
                    Payment.stellar_address.is_not(None),  # type: ignore[union-attr]
                )
            )
            return list(result.scalars().all())

    async def get(self, payment_id: str) -> Payment | None:
        """Get a payment by id."""
        async with self._session_scope() as db:
            return await db.get(Payment, payment_id)

    # ============ Conditional updates ============

    async def mark_paid(
        self,
        payment_id: str,
        expected_token: str | None,
        paging_token: str | None,
        transaction_hash: str | None,
        amount_received: Decimal,
        confirmed_at: datetime | None = None,
    ) -> None:
        """Settle a payment and store the cursor in one update.

        Only applies while the payment is still unexpired at ``confirmed_at``.

        Args:
            payment_id: Payment id
            expected_token: Paging token read before reconciling
            paging_token: New cursor (never behind ``expected_token``)
            transaction_hash: Settling transaction hash
            amount_received: Settling amount
            confirmed_at: Settlement time, defaults to now

        Raises:
            PaymentNotFound: Row no longer exists
            PersistenceConflict: Row is no longer pending, its cursor moved or
                it expired before ``confirmed_at``
        """
        self._check_cursor_not_rewound(expected_token, paging_token)
        now = confirmed_at or utc_now()
        await self._apply(
            payment_id,
            expected_token,
            {
                "status": PaymentStatus.PAID,
                "last_paging_token": paging_token,
                "transaction_hash": transaction_hash,
                "amount_received": amount_received,
                "confirmed_at": now,
            },
            Payment.expiration > now,
        )

    async def advance_cursor(
        self,
        payment_id: str,
        expected_token: str | None,
        paging_token: str,
    ) -> None:
        """Move the resumption cursor forward, leaving the payment pending.

        Raises:
            ValueError: ``paging_token`` is not newer than ``expected_token``
            PaymentNotFound: Row no longer exists
            PersistenceConflict: Row is no longer pending or its cursor moved
        """
        if not is_newer_token(paging_token, expected_token):
            raise ValueError(
                f"Paging token {paging_token!r} does not advance {expected_token!r}"
            )
        await self._apply(payment_id, expected_token, {"last_paging_token": paging_token})

    async def mark_failed(self, payment_id: str, expected_token: str | None) -> None:
        """Mark a pending payment as failed.

        Raises:
            PaymentNotFound: Row no longer exists
            PersistenceConflict: Row is no longer pending or its cursor moved
        """
        await self._apply(payment_id, expected_token, {"status": PaymentStatus.FAILED})

    async def expire_overdue(self, now: datetime) -> int:
        """Mark every pending payment with ``expiration <= now`` as expired.

        Returns:
            Number of payments expired
        """
        stmt = (
            update(Payment)
            .where(
                Payment.status == PaymentStatus.PENDING,
                Payment.expiration <= now,
            )
            .values(status=PaymentStatus.EXPIRED, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        async with self._session_scope() as db:
            result = await db.execute(stmt)
            return result.rowcount or 0

    # ============ Internals ============

    @staticmethod
    def _check_cursor_not_rewound(expected: str | None, new: str | None) -> None:
        if expected and new != expected and not is_newer_token(new, expected):
            raise ValueError(f"Paging token {new!r} would rewind {expected!r}")

    async def _apply(
        self,
        payment_id: str,
        expected_token: str | None,
        values: dict[str, Any],
        *conditions: Any,
    ) -> None:
        """Run the conditional update and classify a miss."""
        stmt = (
            update(Payment)
            .where(
                Payment.id == payment_id,
                Payment.status == PaymentStatus.PENDING,
                Payment.last_paging_token.is_not_distinct_from(expected_token),  # type: ignore[union-attr]
                *conditions,
            )
            .values(**values, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )

        async with self._session_scope() as db:
            result = await db.execute(stmt)
            if result.rowcount == 1:
                return
            current = await db.get(Payment, payment_id)

        if current is None:
            raise PaymentNotFound(payment_id)

        logger.info(
            f"Payment {payment_id} changed concurrently: "
            f"status={current.status.value}, last_paging_token={current.last_paging_token}"
        )
        raise PersistenceConflict(
            f"Payment {payment_id} changed since it was read",
            {
                "payment_id": payment_id,
                "status": current.status.value,
                "last_paging_token": current.last_paging_token,
                "expected_token": expected_token,
                "expiration": format_utc_datetime(current.expiration),
            },
        )
