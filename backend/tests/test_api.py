from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from homecare import crud
from homecare.api.dependencies import get_notifier_service, get_payment_coordinator
from homecare.core.config import settings
from homecare.database import get_db
from homecare.main import app
from homecare.models import BookingStatus
from homecare.services import PaymentCoordinator

# Far enough ahead that the provider disclosure window is closed today.
SERVICE_DAY = date.today() + timedelta(days=30)


@pytest.fixture
def client(session_factory, gateway, notifier):
    def override_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_notifier_service] = lambda: notifier
    app.dependency_overrides[get_payment_coordinator] = lambda: PaymentCoordinator(
        gateway=gateway, notifier=notifier
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user):
    token = jwt.encode({"sub": str(user.id)}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


def _create(client, customer, service):
    res = client.post(
        "/api/v1/bookings/",
        json={
            "service_id": service.id,
            "scheduled_date": SERVICE_DAY.isoformat(),
            "scheduled_time": "10:00:00",
            "duration_hours": 2,
        },
        headers=auth(customer),
    )
    assert res.status_code == 201, res.text
    return res.json()


def test_requires_valid_token(client):
    assert client.get("/api/v1/bookings/me").status_code == 401
    res = client.get("/api/v1/bookings/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


def test_customer_creates_and_reads_booking(client, factory):
    customer = factory.customer(phone="+91-93333-33333")
    service = factory.service(price="250.00")

    body = _create(client, customer, service)

    assert body["status"] == "pending"
    assert Decimal(body["total_amount"]) == Decimal("500.00")
    res = client.get(f"/api/v1/bookings/{body['id']}", headers=auth(customer))
    assert res.status_code == 200
    assert res.json()["customer"]["phone"] == "+91-93333-33333"

    mine = client.get("/api/v1/bookings/me", headers=auth(customer)).json()
    assert [b["id"] for b in mine] == [body["id"]]


def test_other_customer_is_forbidden(client, factory):
    owner = factory.customer()
    booking = _create(client, owner, factory.service())
    res = client.get(f"/api/v1/bookings/{booking['id']}", headers=auth(factory.customer()))
    assert res.status_code == 403
    assert res.json()["detail"]["field_errors"] == {"booking_id": str(booking["id"])}


def test_only_customers_create_bookings(client, factory):
    res = client.post(
        "/api/v1/bookings/",
        json={
            "service_id": factory.service().id,
            "scheduled_date": SERVICE_DAY.isoformat(),
            "scheduled_time": "10:00:00",
        },
        headers=auth(factory.admin()),
    )
    assert res.status_code == 403


def test_accept_twice_is_conflict(client, factory):
    admin = factory.admin()
    booking = _create(client, factory.customer(), factory.service())

    first = client.post(f"/api/v1/bookings/{booking['id']}/accept", headers=auth(admin))
    second = client.post(f"/api/v1/bookings/{booking['id']}/accept", headers=auth(admin))

    assert first.status_code == 200
    assert first.json()["status"] == "confirmed"
    assert second.status_code == 409
    assert second.json()["detail"]["message"] == "Cannot accept Booking in status confirmed"


def test_provider_view_is_redacted_outside_window(client, factory):
    admin = factory.admin()
    customer = factory.customer(phone="+91-94444-44444", address="7 Lake View")
    provider = factory.provider()
    booking = _create(client, customer, factory.service())

    res = client.post(
        f"/api/v1/bookings/{booking['id']}/assign",
        json={"provider_id": provider.id},
        headers=auth(admin),
    )
    assert res.status_code == 200
    assert res.json()["provider_id"] == provider.id

    view = client.get(f"/api/v1/bookings/{booking['id']}", headers=auth(provider.user)).json()
    assert view["customer_contact_available"] is False
    assert view["customer"]["phone"] is None
    assert view["customer"]["address"] is None
    assert view["privacy_message"] == "Contact details will be available 24 hours before service"


def test_rejection_request_flow(client, factory):
    admin = factory.admin()
    provider = factory.provider()
    booking = _create(client, factory.customer(), factory.service())
    client.post(f"/api/v1/bookings/{booking['id']}/accept", headers=auth(admin))
    client.post(
        f"/api/v1/bookings/{booking['id']}/assign",
        json={"provider_id": provider.id},
        headers=auth(admin),
    )

    created = client.post(
        f"/api/v1/rejection-requests/bookings/{booking['id']}",
        json={"reason": "emergency"},
        headers=auth(provider.user),
    )
    assert created.status_code == 201
    duplicate = client.post(
        f"/api/v1/rejection-requests/bookings/{booking['id']}",
        json={"reason": "again"},
        headers=auth(provider.user),
    )
    assert duplicate.status_code == 409

    pending = client.get("/api/v1/rejection-requests/", headers=auth(admin)).json()
    assert [r["id"] for r in pending] == [created.json()["id"]]

    approved = client.post(
        f"/api/v1/rejection-requests/{created.json()['id']}/approve",
        json={"notes": "reassigned"},
        headers=auth(admin),
    )
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"

    pool = client.get("/api/v1/bookings/unassigned", headers=auth(admin)).json()
    assert booking["id"] in [b["id"] for b in pool]


def test_empty_rejection_reason_is_unprocessable(client, factory):
    provider = factory.provider()
    booking = factory.booking(status=BookingStatus.CONFIRMED, provider=provider)
    res = client.post(
        f"/api/v1/rejection-requests/bookings/{booking.id}",
        json={"reason": ""},
        headers=auth(provider.user),
    )
    assert res.status_code == 422


def test_service_request_flow(client, factory):
    admin = factory.admin()
    provider = factory.provider()
    service = factory.service("Wound care")

    created = client.post(
        "/api/v1/service-requests/",
        json={"service_id": service.id, "request_type": "add"},
        headers=auth(provider.user),
    )
    assert created.status_code == 201
    assert created.json()["requested_by"] == "provider"

    approved = client.post(
        f"/api/v1/service-requests/{created.json()['id']}/approve", headers=auth(admin)
    )
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"

    again = client.post(
        "/api/v1/service-requests/",
        json={"service_id": service.id, "request_type": "add"},
        headers=auth(provider.user),
    )
    assert again.status_code == 409


def test_payment_invoice_and_cancellation_refund(client, factory, db):
    admin = factory.admin()
    customer = factory.customer()
    booking = _create(client, customer, factory.service(price="250.00"))
    client.post(f"/api/v1/bookings/{booking['id']}/accept", headers=auth(admin))
    payment = crud.crud_payment.get_payment_by_booking(db, booking["id"])

    processed = client.post(f"/api/v1/payments/{payment.id}/process", headers=auth(customer))
    assert processed.status_code == 200
    assert processed.json()["status"] == "success"

    invoice = client.get(f"/api/v1/payments/{payment.id}/invoice", headers=auth(customer))
    assert invoice.status_code == 200
    assert invoice.json()["invoice_number"].startswith(settings.INVOICE_PREFIX)

    cancelled = client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=auth(customer))
    assert cancelled.status_code == 200
    assert Decimal(cancelled.json()["refund_amount"]) == Decimal("500.00")
    assert cancelled.json()["booking"]["payment_status"] == "refunded"


def test_refund_over_balance_is_unprocessable(client, factory, db):
    admin = factory.admin()
    customer = factory.customer()
    booking = _create(client, customer, factory.service(price="100.00"))
    client.post(f"/api/v1/bookings/{booking['id']}/accept", headers=auth(admin))
    payment = crud.crud_payment.get_payment_by_booking(db, booking["id"])
    client.post(
        f"/api/v1/payments/{payment.id}/callback",
        json={"success": True, "transaction_id": "TXN-CB"},
        headers=auth(admin),
    )

    res = client.post(
        f"/api/v1/payments/{payment.id}/refund",
        json={"amount": "250.00"},
        headers=auth(admin),
    )
    assert res.status_code == 422
    assert "exceeds refundable balance" in res.json()["detail"]["message"]


def test_cannot_open_payment_for_cancelled_booking(client, factory, db):
    customer = factory.customer()
    booking = _create(client, customer, factory.service())
    client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=auth(customer))

    res = client.post("/api/v1/payments/", json={"booking_id": booking["id"]}, headers=auth(customer))

    assert res.status_code == 409
    assert res.json()["detail"]["field_errors"] == {"status": "cancelled"}
    assert crud.crud_payment.get_payment_by_booking(db, booking["id"]) is None


def test_success_callback_requires_transaction_id(client, factory, db):
    admin = factory.admin()
    customer = factory.customer()
    booking = _create(client, customer, factory.service())
    client.post(f"/api/v1/bookings/{booking['id']}/accept", headers=auth(admin))
    payment = crud.crud_payment.get_payment_by_booking(db, booking["id"])

    res = client.post(
        f"/api/v1/payments/{payment.id}/callback",
        json={"success": True},
        headers=auth(admin),
    )

    assert res.status_code == 422
    assert res.json()["detail"]["message"] == "Validation error"
    db.refresh(payment)
    assert payment.status.value == "pending"
