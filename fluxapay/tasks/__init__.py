"""FluxaPay Tasks Module."""

from fluxapay.tasks.celery_app import celery_app
from fluxapay.tasks.monitor import expire_payments, run_payment_monitor_tick

__all__ = [
    "celery_app",
    "expire_payments",
    "run_payment_monitor_tick",
]
