import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import crud, models
from ..database import get_db
from ..models import UserRole
from ..schemas.payment import (
    InvoiceRead,
    PaymentCallback,
    PaymentCreate,
    PaymentResponse,
    RefundRequest,
)
from ..services import PaymentCoordinator
from ..utils import error_response
from .dependencies import get_current_admin, get_current_user, get_payment_coordinator

router = APIRouter(tags=["payments"], default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)


def _ensure_payer(user: models.User, customer_id: int) -> None:
    if user.role == UserRole.ADMIN:
        return
    if user.role == UserRole.CUSTOMER and user.id == customer_id:
        return
    raise error_response(
        "You are not allowed to access this payment",
        {"customer_id": str(customer_id)},
        status.HTTP_403_FORBIDDEN,
    )


@router.post("/", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def create_payment(
    body: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    payments: PaymentCoordinator = Depends(get_payment_coordinator),
) -> Any:
    booking = crud.booking.get_booking(db, body.booking_id)
    if booking is not None:
        _ensure_payer(current_user, booking.customer_id)
    return payments.create(db, body.booking_id, body.method, body.timing)


@router.get("/{payment_id}", response_model=PaymentResponse)
def read_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    payments: PaymentCoordinator = Depends(get_payment_coordinator),
) -> Any:
    payment = payments.get(db, payment_id)
    _ensure_payer(current_user, payment.customer_id)
    return payment


@router.post("/{payment_id}/process", response_model=PaymentResponse)
def process_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    payments: PaymentCoordinator = Depends(get_payment_coordinator),
) -> Any:
    _ensure_payer(current_user, payments.get(db, payment_id).customer_id)
    return payments.process(db, payment_id)


@router.post("/{payment_id}/callback", response_model=PaymentResponse)
def payment_callback(
    payment_id: int,
    body: PaymentCallback,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(get_current_admin),
    payments: PaymentCoordinator = Depends(get_payment_coordinator),
) -> Any:
    """Record an out-of-band gateway outcome for the payment."""
    if body.success:
        return payments.mark_success(db, payment_id, body.transaction_id, body.gateway_response)
    return payments.mark_failed(
        db, payment_id, body.failure_reason or "Payment failed", body.gateway_response
    )


@router.post("/{payment_id}/refund", response_model=PaymentResponse)
def refund_payment(
    payment_id: int,
    body: RefundRequest,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(get_current_admin),
    payments: PaymentCoordinator = Depends(get_payment_coordinator),
) -> Any:
    return payments.refund(db, payment_id, body.amount, body.reason)


@router.get("/{payment_id}/invoice", response_model=InvoiceRead)
def read_invoice(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    payments: PaymentCoordinator = Depends(get_payment_coordinator),
) -> Any:
    _ensure_payer(current_user, payments.get(db, payment_id).customer_id)
    return payments.invoice(db, payment_id)
