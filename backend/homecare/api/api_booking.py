import logging
from typing import Any, List

from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import crud, models
from ..database import get_db
from ..models import UserRole
from ..schemas.booking import (
    BookingAssign,
    BookingComplete,
    BookingCreate,
    BookingReject,
    BookingReschedule,
    BookingResponse,
    CancellationResponse,
    PrivacyAwareBookingResponse,
)
from ..services import BookingLifecycle, ProviderAssignment, project_booking
from ..utils import error_response
from .dependencies import (
    get_booking_lifecycle,
    get_current_admin,
    get_current_customer,
    get_current_user,
    get_provider_assignment,
)

router = APIRouter(tags=["bookings"], default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)
# Mounted by main.py at {API_V1_STR}/bookings


def _forbidden(booking_id: int) -> Exception:
    return error_response(
        "You are not allowed to act on this booking",
        {"booking_id": str(booking_id)},
        status.HTTP_403_FORBIDDEN,
    )


def _is_assigned_provider(user: models.User, booking: models.Booking) -> bool:
    profile = user.provider_profile
    return user.role == UserRole.PROVIDER and profile is not None and booking.provider_id == profile.id


def _ensure_can_view(user: models.User, booking: models.Booking) -> None:
    if user.role == UserRole.ADMIN:
        return
    if user.role == UserRole.CUSTOMER and booking.customer_id == user.id:
        return
    if _is_assigned_provider(user, booking):
        return
    raise _forbidden(booking.id)


def _ensure_staff(user: models.User, booking: models.Booking) -> None:
    """Admins, or the provider bound to the booking."""
    if user.role == UserRole.ADMIN or _is_assigned_provider(user, booking):
        return
    raise _forbidden(booking.id)


def _ensure_owner(user: models.User, booking: models.Booking) -> None:
    if user.role == UserRole.ADMIN:
        return
    if user.role == UserRole.CUSTOMER and booking.customer_id == user.id:
        return
    raise _forbidden(booking.id)


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    *,
    db: Session = Depends(get_db),
    booking_in: BookingCreate,
    current_customer: models.User = Depends(get_current_customer),
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
) -> Any:
    return lifecycle.create(
        db,
        customer_id=current_customer.id,
        service_id=booking_in.service_id,
        scheduled_date=booking_in.scheduled_date,
        scheduled_time=booking_in.scheduled_time,
        duration_hours=booking_in.duration_hours,
        total_amount=booking_in.total_amount,
        patient_id=booking_in.patient_id,
        special_instructions=booking_in.special_instructions,
    )


@router.get("/me", response_model=List[PrivacyAwareBookingResponse])
def read_my_bookings(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> Any:
    """Bookings the caller owns (customers) or is assigned to (providers)."""
    if current_user.role == UserRole.PROVIDER:
        profile = current_user.provider_profile
        bookings = crud.booking.get_bookings_by_provider(db, profile.id) if profile else []
    else:
        bookings = crud.booking.get_bookings_by_customer(db, current_user.id)
    return [project_booking(b, current_user.role) for b in bookings]


@router.get("/unassigned", response_model=List[BookingResponse])
def read_unassigned_bookings(
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(get_current_admin),
    assignment: ProviderAssignment = Depends(get_provider_assignment),
) -> Any:
    return list(assignment.find_unassigned(db))


@router.get("/{booking_id}", response_model=PrivacyAwareBookingResponse)
def read_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
) -> Any:
    booking = lifecycle.get(db, booking_id)
    _ensure_can_view(current_user, booking)
    return project_booking(booking, current_user.role)


@router.post("/{booking_id}/accept", response_model=BookingResponse)
def accept_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
) -> Any:
    _ensure_staff(current_user, lifecycle.get(db, booking_id))
    return lifecycle.accept(db, booking_id)


@router.post("/{booking_id}/reject", response_model=BookingResponse)
def reject_booking(
    booking_id: int,
    body: BookingReject,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
) -> Any:
    _ensure_staff(current_user, lifecycle.get(db, booking_id))
    return lifecycle.reject(db, booking_id, body.reason)


@router.post("/{booking_id}/start", response_model=BookingResponse)
def start_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
) -> Any:
    _ensure_staff(current_user, lifecycle.get(db, booking_id))
    return lifecycle.start_service(db, booking_id)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
def complete_booking(
    booking_id: int,
    body: BookingComplete,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
) -> Any:
    _ensure_staff(current_user, lifecycle.get(db, booking_id))
    return lifecycle.complete_service(db, booking_id, body.notes)


@router.post("/{booking_id}/cancel", response_model=CancellationResponse)
def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
) -> Any:
    _ensure_owner(current_user, lifecycle.get(db, booking_id))
    result = lifecycle.cancel(db, booking_id)
    return CancellationResponse(
        booking=BookingResponse.model_validate(result.booking),
        refund_amount=result.refund_amount,
    )


@router.post("/{booking_id}/reschedule", response_model=BookingResponse)
def reschedule_booking(
    booking_id: int,
    body: BookingReschedule,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    lifecycle: BookingLifecycle = Depends(get_booking_lifecycle),
) -> Any:
    _ensure_owner(current_user, lifecycle.get(db, booking_id))
    return lifecycle.reschedule(db, booking_id, body.scheduled_date, body.scheduled_time)


@router.post("/{booking_id}/assign", response_model=BookingResponse)
def assign_provider(
    booking_id: int,
    body: BookingAssign,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(get_current_admin),
    assignment: ProviderAssignment = Depends(get_provider_assignment),
) -> Any:
    return assignment.assign(db, booking_id, body.provider_id)
