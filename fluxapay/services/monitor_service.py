"""Monitor Service - periodic scan of pending payments.

Each tick snapshots the eligible payments and reconciles them concurrently.
One payment failing never fails the tick, and the same payment id is never
reconciled twice at the same time.
"""

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable
from datetime import datetime
from typing import Any

from fluxapay.core.config import Settings
from fluxapay.ledger.assets import AssetRegistry
from fluxapay.ledger.base import LedgerClient
from fluxapay.models.payment import Payment
from fluxapay.services.payment_lock import PaymentLock
from fluxapay.services.payment_store import PaymentStore, SessionScope
from fluxapay.services.reconciliation_service import (
    ReconciliationOutcome,
    ReconciliationResult,
    ReconciliationService,
)
from fluxapay.utils.helpers import utc_now

logger = logging.getLogger(__name__)

_OUTCOME_COUNTERS = {
    ReconciliationOutcome.SETTLED: "payments_settled",
    ReconciliationOutcome.CURSOR_ADVANCED: "cursors_advanced",
    ReconciliationOutcome.UNCHANGED: "unchanged",
    ReconciliationOutcome.FAILED: "payments_failed",
    ReconciliationOutcome.SKIPPED: "skipped",
    ReconciliationOutcome.LEDGER_UNAVAILABLE: "ledger_errors",
    ReconciliationOutcome.CONFLICT: "conflicts",
    ReconciliationOutcome.NOT_FOUND: "conflicts",
}


async def interval_ticks(
    interval: float,
    stop_event: asyncio.Event | None = None,
) -> AsyncIterator[int]:
    """Yield immediately, then every ``interval`` seconds until stopped.

    The interval is measured from the moment the consumer asks for the next
    tick, so a slow tick never overlaps the following one.
    """
    stop_event = stop_event or asyncio.Event()
    tick = 0
    while not stop_event.is_set():
        yield tick
        tick += 1
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except TimeoutError:
            pass


class PaymentMonitor:
    """Drive reconciliation of pending payments.

    Args:
        store: Payment store used for the eligibility snapshot
        reconciler: Reconciliation service
        concurrency: Maximum payments reconciled in parallel
        lock: Optional cross-process per-payment lock
        clock: Returns the current naive UTC time
    """

    def __init__(
        self,
        store: PaymentStore,
        reconciler: ReconciliationService,
        concurrency: int = 10,
        lock: PaymentLock | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._reconciler = reconciler
        self._semaphore = asyncio.Semaphore(concurrency)
        self._lock = lock
        self._clock = clock
        self._in_flight: set[str] = set()

    @property
    def in_flight(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    async def run_tick(self) -> dict[str, Any]:
        """Run one monitor pass.

        Returns:
            Dict with tick statistics
        """
        stats: dict[str, Any] = {
            "payments_checked": 0,
            "payments_settled": 0,
            "cursors_advanced": 0,
            "unchanged": 0,
            "payments_failed": 0,
            "skipped": 0,
            "ledger_errors": 0,
            "conflicts": 0,
            "errors": [],
        }

        now = self._clock()
        try:
            payments = await self._store.find_eligible(now)
        except Exception as e:
            logger.error(f"Failed to load pending payments: {e}", exc_info=True)
            stats["errors"].append(str(e))
            return stats

        if not payments:
            logger.debug("No pending payments to monitor")
            return stats

        stats["payments_checked"] = len(payments)
        logger.info(f"Checking {len(payments)} pending payments")

        results = await asyncio.gather(*(self._process(payment) for payment in payments))

        for result in results:
            if isinstance(result, Exception):
                stats["errors"].append(str(result))
            elif result is None:
                stats["skipped"] += 1
            else:
                stats[_OUTCOME_COUNTERS[result.outcome]] += 1

        return stats

    async def _process(self, payment: Payment) -> ReconciliationResult | Exception | None:
        """Reconcile one payment in isolation.

        The reconciler reads its own clock when the payment actually runs, so a
        payment that expires while queued behind the semaphore is skipped.

        Returns:
            The reconciliation result, the exception it raised, or None when
            the payment is already being reconciled elsewhere
        """
        if payment.id in self._in_flight:
            logger.debug(f"Payment {payment.id} already in flight, skipping")
            return None

        self._in_flight.add(payment.id)
        try:
            async with self._semaphore:
                lock_token = None
                if self._lock is not None:
                    lock_token = await self._lock.acquire(payment.id)
                    if lock_token is None:
                        logger.debug(f"Payment {payment.id} locked by another worker")
                        return None
                try:
                    return await self._reconciler.reconcile(payment)
                finally:
                    if self._lock is not None and lock_token is not None:
                        await self._release_lock(payment.id, lock_token)
        except Exception as e:
            logger.error(f"Error reconciling payment {payment.id}: {e}", exc_info=True)
            return e
        finally:
            self._in_flight.discard(payment.id)

    async def _release_lock(self, payment_id: str, token: str) -> None:
        try:
            await self._lock.release(payment_id, token)
        except Exception as e:
            # The lock TTL still frees the payment
            logger.warning(f"Failed to release lock for payment {payment_id}: {e}")

    async def expire_overdue(self) -> int:
        """Mark overdue pending payments as expired.

        Returns:
            Number of payments expired
        """
        expired = await self._store.expire_overdue(self._clock())
        if expired:
            logger.info(f"Expired {expired} overdue payments")
        return expired

    async def run(self, ticks: AsyncIterable[Any], expire: bool = True) -> int:
        """Run a tick for every item produced by ``ticks``.

        Errors are logged and never stop the loop.

        Args:
            ticks: Tick source, e.g. ``interval_ticks(120)``
            expire: Also run the expiry sweep on each tick

        Returns:
            Number of ticks processed
        """
        count = 0
        async for _ in ticks:
            try:
                if expire:
                    await self.expire_overdue()
                stats = await self.run_tick()
                logger.info(
                    f"Monitor tick: checked={stats['payments_checked']}, "
                    f"settled={stats['payments_settled']}, "
                    f"advanced={stats['cursors_advanced']}, "
                    f"ledger_errors={stats['ledger_errors']}, errors={len(stats['errors'])}"
                )
            except Exception as e:
                logger.error(f"Monitor tick failed: {e}", exc_info=True)
            count += 1
        return count


def build_monitor(
    settings: Settings,
    ledger: LedgerClient,
    session_scope: SessionScope,
    lock: PaymentLock | None = None,
) -> PaymentMonitor:
    """Wire a PaymentMonitor from configuration.

    The caller owns ``ledger`` (and the lock's Redis client) and closes them.
    """
    store = PaymentStore(session_scope)
    reconciler = ReconciliationService(ledger, store, AssetRegistry.from_settings(settings))
    return PaymentMonitor(
        store,
        reconciler,
        concurrency=settings.monitor_concurrency,
        lock=lock,
    )
