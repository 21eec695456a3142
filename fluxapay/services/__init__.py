"""FluxaPay Service Layer.

Payment store, reconciliation, monitoring and status projection services.
"""

from fluxapay.services.monitor_service import PaymentMonitor, build_monitor, interval_ticks
from fluxapay.services.payment_lock import PaymentLock, RedisPaymentLock
from fluxapay.services.payment_store import PaymentStore
from fluxapay.services.reconciliation_service import (
    ReconciliationOutcome,
    ReconciliationResult,
    ReconciliationService,
    evaluate_page,
)
from fluxapay.services.status_service import PaymentStatusService, PaymentStatusView

__all__ = [
    "PaymentLock",
    "PaymentMonitor",
    "PaymentStatusService",
    "PaymentStatusView",
    "PaymentStore",
    "ReconciliationOutcome",
    "ReconciliationResult",
    "ReconciliationService",
    "RedisPaymentLock",
    "build_monitor",
    "evaluate_page",
    "interval_ticks",
]
