"""Provider requests to be released from an assigned booking.

A provider files a request with a reason; an admin approves it (the booking
loses its provider and goes back to the unassigned pool) or denies it (the
provider stays bound). Only one request per booking may be pending.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from .. import crud, models
from ..database import atomic
from ..models import RequestStatus
from ..models.booking_status import OPEN_FOR_ASSIGNMENT
from ..utils.errors import Conflict, InvalidState, NotFound, ValidationError
from . import approval
from .notifier import NotificationEvent, Notifier, get_notifier
from .provider_assignment import ProviderAssignment

logger = logging.getLogger(__name__)


class RejectionRequestWorkflow:
    def __init__(
        self,
        assignment: Optional[ProviderAssignment] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.notifier = notifier or get_notifier()
        self.assignment = assignment or ProviderAssignment(notifier=self.notifier)

    def _admin(self, db: Session, admin_id: int) -> models.User:
        admin = crud.crud_directory.get_admin(db, admin_id)
        if admin is None:
            raise NotFound("Admin", admin_id)
        return admin

    def _load(self, db: Session, request_id: int) -> models.BookingRejectionRequest:
        request = crud.crud_request.get_rejection_request_for_update(db, request_id)
        if request is None:
            raise NotFound("Rejection request", request_id)
        return request

    def request_rejection(
        self, db: Session, booking_id: int, provider_id: int, reason: str
    ) -> models.BookingRejectionRequest:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Rejection reason is required", {"reason": "required"})

        with atomic(db):
            booking = crud.booking.get_booking_for_update(db, booking_id)
            if booking is None:
                raise NotFound("Booking", booking_id)
            if booking.provider_id != provider_id:
                raise InvalidState(
                    "Booking",
                    "request rejection of",
                    booking.status,
                    f"Booking {booking_id} is not assigned to provider {provider_id}",
                )
            if booking.status not in OPEN_FOR_ASSIGNMENT:
                raise InvalidState("Booking", "request rejection of", booking.status)
            if crud.crud_request.find_pending_rejection(db, booking_id) is not None:
                raise Conflict(
                    f"A rejection request is already pending for booking {booking_id}",
                    {"booking_id": str(booking_id)},
                )

            request = models.BookingRejectionRequest(
                booking=booking,
                provider_id=provider_id,
                rejection_reason=reason,
                status=RequestStatus.PENDING,
            )
            db.add(request)
            db.flush()
        logger.info("Provider %s requested release from booking %s", provider_id, booking_id)
        return request

    def approve(
        self, db: Session, request_id: int, admin_id: int, notes: Optional[str] = None
    ) -> models.BookingRejectionRequest:
        with atomic(db):
            admin = self._admin(db, admin_id)
            request = self._load(db, request_id)
            booking = crud.booking.get_booking_for_update(db, request.booking_id)
            if request.is_pending() and booking.status not in OPEN_FOR_ASSIGNMENT:
                raise InvalidState("Booking", "release provider from", booking.status)
            approval.resolve(request, RequestStatus.APPROVED, admin.id)
            request.admin_notes = notes
            provider = request.provider
            if booking.provider_id == request.provider_id:
                self.assignment.release(booking)
        self._notify_resolution(request, booking, provider, "approved")
        return request

    def deny(
        self, db: Session, request_id: int, admin_id: int, notes: Optional[str] = None
    ) -> models.BookingRejectionRequest:
        with atomic(db):
            admin = self._admin(db, admin_id)
            request = self._load(db, request_id)
            approval.resolve(request, RequestStatus.REJECTED, admin.id)
            request.admin_notes = notes
        self._notify_resolution(request, request.booking, request.provider, "denied")
        return request

    def _notify_resolution(self, request, booking, provider, outcome: str) -> None:
        if provider is not None and provider.user is not None:
            self.notifier.notify(
                NotificationEvent.REJECTION_RESOLVED,
                provider.user.email,
                booking_id=booking.id,
                outcome=outcome,
                request_id=request.id,
            )
        if outcome == "approved" and booking.customer is not None:
            self.notifier.notify(
                NotificationEvent.REJECTION_RESOLVED,
                booking.customer.email,
                booking_id=booking.id,
                outcome="reassigning provider",
                request_id=request.id,
            )

    def list_pending(self, db: Session) -> List[models.BookingRejectionRequest]:
        return crud.crud_request.list_pending_rejections(db)

    def list_for_provider(self, db: Session, provider_id: int) -> List[models.BookingRejectionRequest]:
        return crud.crud_request.list_rejections_by_provider(db, provider_id)

    def pending_for_booking(self, db: Session, booking_id: int) -> Optional[models.BookingRejectionRequest]:
        return crud.crud_request.find_pending_rejection(db, booking_id)

    def count_pending(self, db: Session) -> int:
        return crud.crud_request.count_pending_rejections(db)
