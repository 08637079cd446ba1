"""Booking state machine.

::

    PENDING --accept--> CONFIRMED --start--> IN_PROGRESS --complete--> COMPLETED
    PENDING --reject--> CANCELLED
    PENDING|CONFIRMED --cancel--> CANCELLED

Rescheduling moves the date/time of a PENDING or CONFIRMED booking without
changing its status. Every guard failure raises ``InvalidState``.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, FrozenSet, Optional, Tuple

from sqlalchemy.orm import Session

from .. import crud, models
from ..core.config import settings
from ..database import atomic
from ..models import (
    AvailabilityStatus,
    BookingPaymentStatus,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    PaymentTiming,
    UserRole,
)
from ..utils.errors import InvalidState, NotFound, ValidationError
from .notifier import NotificationEvent, Notifier, get_notifier
from .payments import PaymentCoordinator
from .refunds import refund_amount

logger = logging.getLogger(__name__)

# action -> (allowed source statuses, target status)
TRANSITIONS: Dict[str, Tuple[FrozenSet[BookingStatus], BookingStatus]] = {
    "accept": (frozenset({BookingStatus.PENDING}), BookingStatus.CONFIRMED),
    "reject": (frozenset({BookingStatus.PENDING}), BookingStatus.CANCELLED),
    "start service": (frozenset({BookingStatus.CONFIRMED}), BookingStatus.IN_PROGRESS),
    "complete service": (frozenset({BookingStatus.IN_PROGRESS}), BookingStatus.COMPLETED),
    "cancel": (
        frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED}),
        BookingStatus.CANCELLED,
    ),
}


# Payment statuses holding money that a rejection hands back in full.
_PAID = frozenset({PaymentStatus.SUCCESS, PaymentStatus.PARTIALLY_REFUNDED})


@dataclass
class CancellationResult:
    booking: models.Booking
    refund_amount: Decimal


def _transition(booking: models.Booking, action: str) -> None:
    allowed, target = TRANSITIONS[action]
    if booking.status not in allowed:
        raise InvalidState("Booking", action, booking.status)
    booking.status = target


def _check_future(start: datetime, now: Optional[datetime]) -> None:
    now = now or datetime.now()
    if start <= now:
        raise ValidationError(
            "Scheduled start must be in the future",
            {"scheduled_date": start.date().isoformat(), "scheduled_time": start.time().isoformat()},
        )


class BookingLifecycle:
    def __init__(
        self,
        payments: Optional[PaymentCoordinator] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.notifier = notifier or get_notifier()
        self.payments = payments or PaymentCoordinator(notifier=self.notifier)

    def _load(self, db: Session, booking_id: int) -> models.Booking:
        booking = crud.booking.get_booking_for_update(db, booking_id)
        if booking is None:
            raise NotFound("Booking", booking_id)
        return booking

    def get(self, db: Session, booking_id: int) -> models.Booking:
        booking = crud.booking.get_booking(db, booking_id)
        if booking is None:
            raise NotFound("Booking", booking_id)
        return booking

    def create(
        self,
        db: Session,
        customer_id: int,
        service_id: int,
        scheduled_date: date,
        scheduled_time: time,
        duration_hours: int = 1,
        total_amount: Optional[Decimal] = None,
        patient_id: Optional[int] = None,
        special_instructions: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> models.Booking:
        with atomic(db):
            customer = crud.crud_directory.get_user(db, customer_id)
            if customer is None:
                raise NotFound("User", customer_id)
            if customer.role != UserRole.CUSTOMER:
                raise ValidationError("Only customers can create bookings", {"customer_id": str(customer_id)})
            service = crud.crud_directory.get_service(db, service_id)
            if service is None:
                raise NotFound("Service", service_id)
            if not service.is_active:
                raise ValidationError("Service is not available", {"service_id": str(service_id)})

            patient = None
            if patient_id is not None:
                patient = crud.crud_directory.get_patient(db, patient_id)
                if patient is None:
                    raise NotFound("Patient", patient_id)
                if patient.customer_id != customer.id:
                    raise ValidationError(
                        "Patient does not belong to this customer", {"patient_id": str(patient_id)}
                    )

            if duration_hours is None or duration_hours < 1:
                raise ValidationError("Duration must be at least one hour", {"duration_hours": str(duration_hours)})
            _check_future(datetime.combine(scheduled_date, scheduled_time), now)

            if total_amount is None:
                total_amount = Decimal(service.price) * duration_hours
            total_amount = Decimal(str(total_amount)).quantize(Decimal("0.01"))
            if total_amount <= 0:
                raise ValidationError("Total amount must be positive", {"total_amount": str(total_amount)})

            booking = models.Booking(
                customer=customer,
                service=service,
                patient=patient,
                status=BookingStatus.PENDING,
                payment_status=BookingPaymentStatus.PENDING,
                scheduled_date=scheduled_date,
                scheduled_time=scheduled_time,
                duration_hours=duration_hours,
                total_amount=total_amount,
                special_instructions=special_instructions,
            )
            db.add(booking)
            db.flush()
        logger.info("Created booking %s for customer %s", booking.id, customer_id)
        return booking

    def accept(self, db: Session, booking_id: int) -> models.Booking:
        with atomic(db):
            booking = self._load(db, booking_id)
            _transition(booking, "accept")
            if crud.crud_payment.get_payment_by_booking(db, booking.id) is None:
                self.payments.open_for(
                    db, booking, PaymentMethod(settings.DEFAULT_PAYMENT_METHOD), PaymentTiming.ADVANCE
                )
        self.notifier.notify(
            NotificationEvent.BOOKING_CONFIRMED,
            booking.customer.email,
            booking_id=booking.id,
            scheduled_date=booking.scheduled_date.isoformat(),
        )
        return booking

    def reject(self, db: Session, booking_id: int, reason: str) -> models.Booking:
        if not (reason or "").strip():
            raise ValidationError("Rejection reason is required", {"reason": "required"})
        with atomic(db):
            booking = self._load(db, booking_id)
            _transition(booking, "reject")
            booking.append_note(f"Rejected: {reason.strip()}")
            refunded = self._settle_payment(db, booking, "Booking rejected")
        self.notifier.notify(
            NotificationEvent.BOOKING_CANCELLED,
            booking.customer.email,
            booking_id=booking.id,
            reason=reason.strip(),
            refund_amount=str(refunded),
        )
        return booking

    def start_service(self, db: Session, booking_id: int) -> models.Booking:
        with atomic(db):
            booking = self._load(db, booking_id)
            if booking.provider_id is None:
                raise InvalidState(
                    "Booking",
                    "start service",
                    booking.status,
                    "Cannot start service on a booking with no provider",
                )
            _transition(booking, "start service")
            provider = crud.crud_directory.get_provider_for_update(db, booking.provider_id)
            provider.availability_status = AvailabilityStatus.BUSY
        return booking

    def complete_service(self, db: Session, booking_id: int, notes: Optional[str] = None) -> models.Booking:
        with atomic(db):
            booking = self._load(db, booking_id)
            _transition(booking, "complete service")
            booking.append_note(notes)
            if booking.provider_id is not None:
                self._free_provider(db, booking)
        return booking

    def _free_provider(self, db: Session, booking: models.Booking) -> None:
        provider = crud.crud_directory.get_provider_for_update(db, booking.provider_id)
        if provider is None or provider.availability_status != AvailabilityStatus.BUSY:
            return
        db.flush()
        others = crud.booking.count_in_progress_for_provider(db, provider.id, exclude_booking_id=booking.id)
        if others == 0:
            provider.availability_status = AvailabilityStatus.AVAILABLE

    def _settle_payment(
        self,
        db: Session,
        booking: models.Booking,
        reason: str,
        amount: Optional[Decimal] = None,
    ) -> Decimal:
        """Refund a paid booking, or close out a payment never charged.

        ``amount=None`` refunds whatever is still refundable.
        """
        payment = crud.crud_payment.get_payment_by_booking(db, booking.id)
        if payment is None:
            return Decimal("0.00")
        if amount is None:
            amount = payment.refundable_amount if payment.status in _PAID else Decimal("0.00")
        if amount > 0:
            self.payments.apply_refund(payment, amount, reason)
        elif payment.status == PaymentStatus.PENDING:
            self.payments.apply_failure(payment, reason)
        return amount

    def cancel(self, db: Session, booking_id: int, now: Optional[datetime] = None) -> CancellationResult:
        with atomic(db):
            booking = self._load(db, booking_id)
            if not booking.can_be_cancelled():
                raise InvalidState("Booking", "cancel", booking.status)
            _transition(booking, "cancel")

            amount = refund_amount(booking, now)
            self._settle_payment(db, booking, "Booking cancelled", amount)

        logger.info("Cancelled booking %s, refund %s", booking.id, amount)
        self.notifier.notify(
            NotificationEvent.BOOKING_CANCELLED,
            booking.customer.email,
            booking_id=booking.id,
            refund_amount=str(amount),
        )
        if booking.provider is not None and booking.provider.user is not None:
            self.notifier.notify(
                NotificationEvent.BOOKING_CANCELLED,
                booking.provider.user.email,
                booking_id=booking.id,
            )
        return CancellationResult(booking=booking, refund_amount=amount)

    def reschedule(
        self,
        db: Session,
        booking_id: int,
        new_date: date,
        new_time: time,
        now: Optional[datetime] = None,
    ) -> models.Booking:
        with atomic(db):
            booking = self._load(db, booking_id)
            if not booking.can_be_rescheduled():
                raise InvalidState("Booking", "reschedule", booking.status)
            _check_future(datetime.combine(new_date, new_time), now)
            booking.scheduled_date = new_date
            booking.scheduled_time = new_time
            if booking.status == BookingStatus.RESCHEDULED:
                booking.status = BookingStatus.PENDING
        return booking
