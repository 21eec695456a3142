"""Celery configuration.

Usage:
    # Start a worker
    celery -A fluxapay.tasks.celery_app worker -Q monitor -l info

    # Start beat scheduler
    celery -A fluxapay.tasks.celery_app beat -l info
"""

from celery import Celery

from fluxapay.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "fluxapay_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["fluxapay.tasks.monitor"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    result_expires=3600,
    task_routes={
        "monitor.*": {"queue": "monitor"},
    },
)

if settings.monitor_enabled:
    celery_app.conf.beat_schedule = {
        "payment-monitor-tick": {
            "task": "monitor.run_tick",
            "schedule": settings.payment_monitor_interval_seconds,
            # A tick that outlives the next interval is dropped, not queued
            "options": {"expires": settings.payment_monitor_interval_seconds},
        },
        "expire-payments": {
            "task": "monitor.expire_payments",
            "schedule": settings.payment_expiry_sweep_seconds,
        },
    }
