"""API module - route handlers and common dependencies."""

from fluxapay.api.deps import StatusService, get_payment_store, get_status_service
from fluxapay.api.payments import router as payments_router

__all__ = [
    "StatusService",
    "get_payment_store",
    "get_status_service",
    "payments_router",
]
