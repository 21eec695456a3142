"""Payment Monitor Script - Watch pending payments without Celery.

Runs the monitor loop in a single process: on every interval it expires
overdue payments, then reconciles all eligible pending payments against
Horizon.

Usage:
    python -m fluxapay.scripts.payment_monitor
    python -m fluxapay.scripts.payment_monitor --once
    python -m fluxapay.scripts.payment_monitor --interval 30
"""

import argparse
import asyncio
import logging
import signal

from fluxapay.core.config import get_settings
from fluxapay.db.engine import close_db, get_session
from fluxapay.ledger.horizon import HorizonLedgerClient
from fluxapay.services.monitor_service import build_monitor, interval_ticks

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def main(interval: float | None = None, once: bool = False) -> None:
    """Main entry point."""
    settings = get_settings()
    interval = interval or settings.payment_monitor_interval_seconds
    ledger = HorizonLedgerClient.from_settings(settings)
    monitor = build_monitor(settings, ledger, get_session)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Signal handlers are unavailable on some platforms
            pass

    logger.info(
        f"Starting payment monitor: horizon={settings.stellar_horizon_url}, "
        f"interval={interval}s, concurrency={settings.monitor_concurrency}"
    )

    try:
        if once:
            await monitor.expire_overdue()
            stats = await monitor.run_tick()
            logger.info(f"Single pass finished: {stats}")
        else:
            await monitor.run(interval_ticks(interval, stop_event))
    finally:
        await ledger.aclose()
        await close_db()
        logger.info("Payment monitor stopped")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the FluxaPay payment monitor loop")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between ticks")
    parser.add_argument("--once", action="store_true", help="Run a single pass and exit")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    asyncio.run(main(interval=args.interval, once=args.once))
