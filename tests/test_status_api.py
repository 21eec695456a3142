"""Tests for the payment status service and API routes."""

from datetime import datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fluxapay.api.deps import get_status_service
from fluxapay.api.payments import router
from fluxapay.core.exceptions import PaymentNotFound
from fluxapay.models.payment import PaymentStatus
from fluxapay.schemas.payment import PaymentStatusResponse, PublicPaymentStatus
from fluxapay.services.status_service import PaymentStatusService, to_public_status


class InMemoryStore:
    """Read-only store double keyed by payment id."""

    def __init__(self, payments):
        self._payments = {payment.id: payment for payment in payments}

    async def get(self, payment_id):
        return self._payments.get(payment_id)


@pytest.fixture
def client(make_payment, now):
    store = InMemoryStore(
        [
            make_payment(id="pending_1", description="Order #1"),
            make_payment(
                id="paid_1",
                status=PaymentStatus.PAID,
                transaction_hash="tx_67890",
                confirmed_at=now,
                updated_at=now + timedelta(seconds=5),
            ),
        ]
    )
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_status_service] = lambda: PaymentStatusService(store)
    return TestClient(app)


class TestStatusMapping:
    @pytest.mark.parametrize(
        "status, expected",
        [
            (PaymentStatus.PENDING, PublicPaymentStatus.PENDING),
            (PaymentStatus.PAID, PublicPaymentStatus.CONFIRMED),
            (PaymentStatus.EXPIRED, PublicPaymentStatus.EXPIRED),
            (PaymentStatus.FAILED, PublicPaymentStatus.FAILED),
        ],
    )
    def test_public_status(self, status, expected):
        assert to_public_status(status) == expected

    def test_accepts_raw_value(self):
        assert to_public_status("paid") == PublicPaymentStatus.CONFIRMED


class TestPaymentStatusService:
    @pytest.mark.asyncio
    async def test_confirmed_uses_confirmation_time(self, make_payment, now):
        payment = make_payment(
            status=PaymentStatus.PAID,
            confirmed_at=now,
            updated_at=now + timedelta(seconds=5),
        )
        service = PaymentStatusService(InMemoryStore([payment]))

        view = await service.get_status("payment_1")

        assert view.status == PublicPaymentStatus.CONFIRMED
        assert view.timestamp == now

    @pytest.mark.asyncio
    async def test_pending_uses_last_update(self, make_payment):
        payment = make_payment()
        service = PaymentStatusService(InMemoryStore([payment]))

        view = await service.get_status("payment_1")

        assert view.status == PublicPaymentStatus.PENDING
        assert view.timestamp == payment.updated_at

    @pytest.mark.asyncio
    async def test_unknown_payment(self):
        service = PaymentStatusService(InMemoryStore([]))

        with pytest.raises(PaymentNotFound):
            await service.get_status("missing")


class TestPaymentRoutes:
    def test_status_pending(self, client):
        response = client.get("/payments/pending_1/status")

        assert response.status_code == 200
        data = response.json()
        assert data["payment_id"] == "pending_1"
        assert data["status"] == "pending"
        # Pending payments report the last row update
        assert data["timestamp"] == "2026-10-19T11:59:00Z"

    def test_status_confirmed(self, client):
        response = client.get("/payments/paid_1/status")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "confirmed"
        assert data["timestamp"] == "2026-10-19T12:00:00Z"

    def test_status_not_found(self, client):
        response = client.get("/payments/missing/status")

        assert response.status_code == 404
        detail = response.json()["detail"]
        assert detail["success"] is False
        assert detail["error_code"] == "PAYMENT_NOT_FOUND"

    def test_payment_detail(self, client):
        response = client.get("/payments/paid_1")

        assert response.status_code == 200
        data = response.json()
        assert data["payment_id"] == "paid_1"
        assert data["currency"] == "USDC"
        assert data["address"] == "GTEST123"
        assert data["status"] == "confirmed"
        assert data["transaction_hash"] == "tx_67890"
        assert data["expires_at"] == (datetime(2026, 10, 19, 12, 15)).isoformat() + "Z"

    def test_payment_detail_not_found(self, client):
        response = client.get("/payments/missing")

        assert response.status_code == 404


class TestApplication:
    def test_health(self):
        from fluxapay.main import create_app

        response = TestClient(create_app()).get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestResponseSchema:
    def test_timestamp_field_documents_fallback(self):
        description = PaymentStatusResponse.model_fields["timestamp"].description

        assert "Confirmation time" in description
        assert "updated" in description
