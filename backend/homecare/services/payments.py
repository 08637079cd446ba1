"""Payment and invoice coordination for bookings.

Each booking has at most one Payment. Its status moves

    PENDING -> PROCESSING -> SUCCESS | FAILED
    SUCCESS -> PARTIALLY_REFUNDED -> REFUNDED

and the booking's ``payment_status`` is kept in lockstep. The invoice number
is assigned the first time a payment succeeds and never changes afterwards.

Public methods commit their own unit of work. The ``open_for``/``apply_*``
helpers only flush, for callers that already hold a transaction (the booking
state machine accepts and cancels through them).
"""

import logging
import secrets
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy.orm import Session

from .. import crud, models
from ..core.config import settings
from ..database import atomic
from ..models import (
    BookingPaymentStatus,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    PaymentTiming,
)
from ..models.booking_status import OPEN_FOR_ASSIGNMENT
from ..schemas.payment import InvoiceRead
from ..utils.errors import Conflict, InvalidAmount, InvalidState, NotFound, ValidationError
from .gateway import GatewayError, PaymentGateway, get_gateway
from .notifier import NotificationEvent, Notifier, get_notifier

logger = logging.getLogger(__name__)

_ZERO = Decimal("0.00")

# Booking payment status mirrored for each payment status.
_BOOKING_STATUS = {
    PaymentStatus.SUCCESS: BookingPaymentStatus.PAID,
    PaymentStatus.FAILED: BookingPaymentStatus.FAILED,
    PaymentStatus.REFUNDED: BookingPaymentStatus.REFUNDED,
    PaymentStatus.PARTIALLY_REFUNDED: BookingPaymentStatus.PARTIALLY_REFUNDED,
}

_REFUNDED = frozenset({PaymentStatus.REFUNDED, PaymentStatus.PARTIALLY_REFUNDED})
_REFUNDABLE = frozenset({PaymentStatus.SUCCESS, PaymentStatus.PARTIALLY_REFUNDED})
_PROCESSABLE = frozenset({PaymentStatus.PENDING, PaymentStatus.FAILED})
# Bookings that can no longer take a charge.
_CLOSED_BOOKINGS = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})


def _money(value: Union[Decimal, int, float, str]) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))


def generate_invoice_number() -> str:
    return f"{settings.INVOICE_PREFIX}{secrets.token_hex(4).upper()}"


class PaymentCoordinator:
    def __init__(
        self,
        gateway: Optional[PaymentGateway] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.gateway = gateway or get_gateway()
        self.notifier = notifier or get_notifier()

    # -- lookups ---------------------------------------------------------

    def _load(self, db: Session, payment_id: int) -> models.Payment:
        payment = crud.crud_payment.get_payment_for_update(db, payment_id)
        if payment is None:
            raise NotFound("Payment", payment_id)
        return payment

    def _ensure_chargeable(self, payment: models.Payment, action: str) -> None:
        booking = payment.booking
        if booking is not None and booking.status in _CLOSED_BOOKINGS:
            raise InvalidState("Booking", action, booking.status)

    def get(self, db: Session, payment_id: int) -> models.Payment:
        payment = crud.crud_payment.get_payment(db, payment_id)
        if payment is None:
            raise NotFound("Payment", payment_id)
        return payment

    # -- in-transaction helpers -----------------------------------------

    def _sync_booking(self, payment: models.Payment) -> None:
        mirrored = _BOOKING_STATUS.get(payment.status)
        if mirrored is not None and payment.booking is not None:
            payment.booking.payment_status = mirrored

    def open_for(
        self,
        db: Session,
        booking: models.Booking,
        method: PaymentMethod,
        timing: PaymentTiming = PaymentTiming.ADVANCE,
    ) -> models.Payment:
        if booking.status not in OPEN_FOR_ASSIGNMENT:
            raise InvalidState("Booking", "open payment for", booking.status)
        if crud.crud_payment.get_payment_by_booking(db, booking.id) is not None:
            raise Conflict(
                f"Payment already exists for booking {booking.id}",
                {"booking_id": str(booking.id)},
            )
        payment = models.Payment(
            booking=booking,
            customer_id=booking.customer_id,
            amount=_money(booking.total_amount),
            refunded_amount=_ZERO,
            currency=settings.DEFAULT_CURRENCY,
            method=PaymentMethod(method),
            timing=PaymentTiming(timing),
            status=PaymentStatus.PENDING,
            gateway=self.gateway.name,
        )
        db.add(payment)
        db.flush()
        logger.info("Opened payment %s for booking %s", payment.id, booking.id)
        return payment

    def apply_success(
        self,
        payment: models.Payment,
        transaction_id: Optional[str],
        gateway_response: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> models.Payment:
        if payment.status in _REFUNDED:
            raise InvalidState("Payment", "mark as successful", payment.status)
        transaction_id = (transaction_id or "").strip() or payment.transaction_id
        if not transaction_id:
            # Refunds go back through the gateway against this reference.
            raise ValidationError(
                "Transaction id is required to mark a payment successful",
                {"transaction_id": "required"},
            )
        payment.status = PaymentStatus.SUCCESS
        payment.transaction_id = transaction_id
        if gateway_response:
            payment.gateway_response = gateway_response
        payment.failure_reason = None
        if payment.paid_at is None:
            payment.paid_at = now or datetime.now()
        if not payment.invoice_number:
            payment.invoice_number = generate_invoice_number()
        self._sync_booking(payment)
        return payment

    def apply_failure(
        self,
        payment: models.Payment,
        reason: str,
        gateway_response: Optional[str] = None,
    ) -> models.Payment:
        if payment.status == PaymentStatus.SUCCESS or payment.status in _REFUNDED:
            raise InvalidState("Payment", "mark as failed", payment.status)
        payment.status = PaymentStatus.FAILED
        payment.failure_reason = reason
        if gateway_response:
            payment.gateway_response = gateway_response
        self._sync_booking(payment)
        return payment

    def apply_refund(
        self,
        payment: models.Payment,
        amount: Union[Decimal, int, float, str],
        reason: Optional[str] = None,
    ) -> models.Payment:
        amount = _money(amount)
        if amount < 0:
            raise InvalidAmount("Refund amount cannot be negative", {"amount": str(amount)})
        if amount > payment.refundable_amount:
            raise InvalidAmount(
                f"Refund amount {amount} exceeds refundable balance {payment.refundable_amount}",
                {"amount": str(amount)},
            )
        if amount == 0:
            return payment
        if payment.status not in _REFUNDABLE:
            raise InvalidState("Payment", "refund", payment.status)

        try:
            result = self.gateway.refund(payment.transaction_id, amount)
        except GatewayError as exc:
            logger.warning("Refund of payment %s failed at gateway: %s", payment.id, exc)
            payment.failure_reason = f"Refund failed: {exc}"
            return payment
        if not result.ok:
            logger.warning("Refund of payment %s declined: %s", payment.id, result.message)
            payment.failure_reason = f"Refund failed: {result.message}"
            return payment

        payment.refunded_amount = _money(payment.refunded_amount or 0) + amount
        payment.refund_id = result.reference
        payment.refund_reason = reason
        if payment.refundable_amount <= 0:
            payment.status = PaymentStatus.REFUNDED
        else:
            payment.status = PaymentStatus.PARTIALLY_REFUNDED
        self._sync_booking(payment)
        logger.info("Refunded %s on payment %s", amount, payment.id)
        return payment

    # -- operations ------------------------------------------------------

    def create(
        self,
        db: Session,
        booking_id: int,
        method: PaymentMethod = PaymentMethod.ONLINE,
        timing: PaymentTiming = PaymentTiming.ADVANCE,
    ) -> models.Payment:
        with atomic(db):
            booking = crud.booking.get_booking_for_update(db, booking_id)
            if booking is None:
                raise NotFound("Booking", booking_id)
            payment = self.open_for(db, booking, method, timing)
        return payment

    def process(self, db: Session, payment_id: int) -> models.Payment:
        """Charge the payment through the gateway and record the outcome."""
        with atomic(db):
            payment = self._load(db, payment_id)
            if payment.status not in _PROCESSABLE:
                raise InvalidState("Payment", "process", payment.status)
            self._ensure_chargeable(payment, "charge payment for")
            payment.status = PaymentStatus.PROCESSING
            db.flush()
            try:
                result = self.gateway.initiate(
                    payment.amount, payment.method.value, f"customer-{payment.customer_id}"
                )
            except GatewayError as exc:
                logger.warning("Gateway error processing payment %s: %s", payment.id, exc)
                self.apply_failure(payment, f"Gateway error: {exc}")
            else:
                if result.ok:
                    self.apply_success(payment, result.reference, result.message)
                else:
                    self.apply_failure(
                        payment, result.message or "Payment was not completed", result.message
                    )
        if payment.status == PaymentStatus.SUCCESS:
            self._notify_paid(payment)
        return payment

    def mark_success(
        self,
        db: Session,
        payment_id: int,
        transaction_id: str,
        gateway_response: Optional[str] = None,
    ) -> models.Payment:
        with atomic(db):
            payment = self._load(db, payment_id)
            if payment.status != PaymentStatus.SUCCESS:
                self._ensure_chargeable(payment, "mark payment successful for")
            self.apply_success(payment, transaction_id, gateway_response)
        self._notify_paid(payment)
        return payment

    def mark_failed(
        self,
        db: Session,
        payment_id: int,
        reason: str,
        gateway_response: Optional[str] = None,
    ) -> models.Payment:
        with atomic(db):
            payment = self._load(db, payment_id)
            self.apply_failure(payment, reason, gateway_response)
        return payment

    def refund(
        self,
        db: Session,
        payment_id: int,
        amount: Union[Decimal, int, float, str],
        reason: Optional[str] = None,
    ) -> models.Payment:
        with atomic(db):
            payment = self._load(db, payment_id)
            self.apply_refund(payment, amount, reason)
        return payment

    def invoice(self, db: Session, payment_id: int) -> InvoiceRead:
        payment = self.get(db, payment_id)
        if not payment.invoice_number:
            raise NotFound("Invoice for payment", payment_id)
        return InvoiceRead(
            invoice_number=payment.invoice_number,
            payment_id=payment.id,
            booking_id=payment.booking_id,
            customer_id=payment.customer_id,
            amount=_money(payment.amount),
            refunded_amount=_money(payment.refunded_amount or 0),
            net_amount=payment.refundable_amount,
            currency=payment.currency,
            method=payment.method,
            status=payment.status,
            paid_at=payment.paid_at,
        )

    def _notify_paid(self, payment: models.Payment) -> None:
        customer = payment.customer
        self.notifier.notify(
            NotificationEvent.PAYMENT_SUCCEEDED,
            customer.email if customer else None,
            booking_id=payment.booking_id,
            invoice_number=payment.invoice_number,
            amount=str(payment.amount),
        )
