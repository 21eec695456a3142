"""Common FastAPI dependencies for API endpoints."""

from typing import Annotated

from fastapi import Depends

from fluxapay.services.payment_store import PaymentStore
from fluxapay.services.status_service import PaymentStatusService


def get_payment_store() -> PaymentStore:
    """Payment store bound to the application database."""
    from fluxapay.db import get_session

    return PaymentStore(get_session)


def get_status_service(
    store: Annotated[PaymentStore, Depends(get_payment_store)],
) -> PaymentStatusService:
    return PaymentStatusService(store)


StatusService = Annotated[PaymentStatusService, Depends(get_status_service)]
