"""Payment monitor tasks.

Celery tasks for:
- Reconciling pending payments against the Stellar ledger
- Expiring overdue payments
"""

import asyncio
import logging
import time

from fluxapay.core.config import get_settings
from fluxapay.core.redis import create_redis
from fluxapay.db.engine import close_db, get_session
from fluxapay.ledger.horizon import HorizonLedgerClient
from fluxapay.services.monitor_service import build_monitor
from fluxapay.services.payment_lock import RedisPaymentLock
from fluxapay.services.payment_store import PaymentStore
from fluxapay.tasks.celery_app import celery_app
from fluxapay.utils.helpers import utc_now

logger = logging.getLogger(__name__)


def run_async(coro):
    """Run async coroutine in sync context for Celery."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@celery_app.task(name="monitor.run_tick")
def run_payment_monitor_tick() -> dict:
    """Run one payment monitor pass.

    Returns:
        Dict with tick statistics
    """
    return run_async(_run_tick_async())


async def _run_tick_async() -> dict:
    """Async implementation of run_payment_monitor_tick."""
    settings = get_settings()
    start_time = time.time()
    ledger = HorizonLedgerClient.from_settings(settings)
    redis_client = create_redis(settings.redis_url)

    try:
        monitor = build_monitor(
            settings,
            ledger,
            get_session,
            lock=RedisPaymentLock(redis_client, ttl_seconds=settings.monitor_lock_ttl_seconds),
        )
        stats = await monitor.run_tick()
        elapsed = time.time() - start_time
        logger.info(
            f"[monitor.run_tick] checked={stats['payments_checked']} "
            f"settled={stats['payments_settled']} advanced={stats['cursors_advanced']} "
            f"ledger_errors={stats['ledger_errors']} conflicts={stats['conflicts']} "
            f"errors={len(stats['errors'])} elapsed={elapsed:.3f}s"
        )
        return stats
    finally:
        await ledger.aclose()
        await redis_client.aclose()
        await close_db()


@celery_app.task(name="monitor.expire_payments")
def expire_payments() -> dict:
    """Mark pending payments past their expiration as expired.

    Returns:
        Dict with the number of expired payments
    """
    return run_async(_expire_payments_async())


async def _expire_payments_async() -> dict:
    """Async implementation of expire_payments."""
    try:
        store = PaymentStore(get_session)
        expired = await store.expire_overdue(utc_now())
        if expired:
            logger.info(f"[monitor.expire_payments] expired={expired}")
        return {"expired": expired}
    finally:
        await close_db()
