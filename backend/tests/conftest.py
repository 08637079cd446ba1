import os
from datetime import date, time, timedelta
from decimal import Decimal
from typing import Any, List, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUN", "1")

from homecare import models  # noqa: E402
from homecare.models import (  # noqa: E402
    AvailabilityStatus,
    BookingPaymentStatus,
    BookingStatus,
    UserRole,
)
from homecare.models.base import BaseModel  # noqa: E402
from homecare.services import (  # noqa: E402
    BookingLifecycle,
    CatalogRequestWorkflow,
    PaymentCoordinator,
    ProviderAssignment,
    RejectionRequestWorkflow,
)
from homecare.services.gateway import (  # noqa: E402
    GatewayOutcome,
    GatewayResult,
    PaymentGateway,
)
from homecare.services.notifier import NotificationEvent, Notifier  # noqa: E402


class FakeGateway(PaymentGateway):
    """Gateway whose outcomes are set by the test."""

    name = "fake"

    def __init__(self):
        self.charge_outcome = GatewayOutcome.SUCCESS
        self.refund_outcome = GatewayOutcome.SUCCESS
        self.error: Optional[Exception] = None
        self.charges: List[Tuple[Decimal, str, str]] = []
        self.refunds: List[Tuple[str, Decimal]] = []

    def initiate(self, amount, method, customer_ref):
        if self.error is not None:
            raise self.error
        self.charges.append((Decimal(amount), method, customer_ref))
        message = "ok" if self.charge_outcome == GatewayOutcome.SUCCESS else "Card declined"
        return GatewayResult(f"TXN_{len(self.charges)}", self.charge_outcome, message)

    def refund(self, transaction_id, amount):
        if self.error is not None:
            raise self.error
        if not transaction_id:
            return GatewayResult("", GatewayOutcome.FAILED, "Missing transaction reference")
        self.refunds.append((transaction_id, Decimal(amount)))
        message = "ok" if self.refund_outcome == GatewayOutcome.SUCCESS else "Refund rejected"
        return GatewayResult(f"RFD_{len(self.refunds)}", self.refund_outcome, message)


class RecordingNotifier(Notifier):
    def __init__(self):
        self.sent: List[Tuple[NotificationEvent, str, dict]] = []

    def send(self, event, recipient, **context):
        self.sent.append((event, recipient, context))

    def events(self) -> List[NotificationEvent]:
        return [e for e, _, _ in self.sent]


class Factory:
    """Inserts rows directly, bypassing the state machine guards."""

    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def user(self, role: UserRole = UserRole.CUSTOMER, **kwargs: Any) -> models.User:
        n = self._next()
        fields = {
            "email": f"{role.value}{n}@example.com",
            "name": f"{role.value.title()} {n}",
            "phone": f"+91-90000-{n:05d}",
            "address": f"{n} Care Street",
            "role": role,
        }
        fields.update(kwargs)
        return self._save(models.User(**fields))

    def customer(self, **kwargs: Any) -> models.User:
        return self.user(UserRole.CUSTOMER, **kwargs)

    def admin(self, **kwargs: Any) -> models.User:
        return self.user(UserRole.ADMIN, **kwargs)

    def provider(
        self,
        verified: bool = True,
        availability: AvailabilityStatus = AvailabilityStatus.AVAILABLE,
        services: Optional[list] = None,
    ) -> models.Provider:
        user = self.user(UserRole.PROVIDER)
        provider = models.Provider(
            user=user,
            name=user.name,
            phone=user.phone,
            is_verified=verified,
            availability_status=availability,
        )
        for service in services or []:
            provider.services.append(service)
        return self._save(provider)

    def service(self, name: str = "Elderly care", price: str = "250.00", active: bool = True) -> models.Service:
        return self._save(models.Service(name=name, price=Decimal(price), is_active=active))

    def patient(self, customer: models.User, **kwargs: Any) -> models.Patient:
        fields = {
            "customer": customer,
            "name": "Asha",
            "age": 78,
            "emergency_contact_name": "Ravi",
            "emergency_contact_phone": "+91-98888-00000",
            "emergency_contact_relation": "son",
        }
        fields.update(kwargs)
        return self._save(models.Patient(**fields))

    def booking(
        self,
        customer: Optional[models.User] = None,
        service: Optional[models.Service] = None,
        on: Optional[date] = None,
        at: time = time(10, 0),
        status: BookingStatus = BookingStatus.PENDING,
        provider: Optional[models.Provider] = None,
        total: str = "500.00",
        payment_status: BookingPaymentStatus = BookingPaymentStatus.PENDING,
        duration_hours: int = 2,
        patient: Optional[models.Patient] = None,
    ) -> models.Booking:
        booking = models.Booking(
            customer=customer or self.customer(),
            service=service or self.service(),
            provider=provider,
            patient=patient,
            status=status,
            scheduled_date=on or date.today() + timedelta(days=7),
            scheduled_time=at,
            duration_hours=duration_hours,
            total_amount=Decimal(total),
            payment_status=payment_status,
        )
        return self._save(booking)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def payments(gateway, notifier):
    return PaymentCoordinator(gateway=gateway, notifier=notifier)


@pytest.fixture
def lifecycle(payments, notifier):
    return BookingLifecycle(payments=payments, notifier=notifier)


@pytest.fixture
def assignment(notifier):
    return ProviderAssignment(notifier=notifier)


@pytest.fixture
def rejections(assignment, notifier):
    return RejectionRequestWorkflow(assignment=assignment, notifier=notifier)


@pytest.fixture
def catalog(notifier):
    return CatalogRequestWorkflow(notifier=notifier)

