import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from .. import crud, models
from ..crud import UnassignedBookings
from ..database import atomic
from ..models import AvailabilityStatus, BookingStatus
from ..utils.errors import InvalidState, NotFound, ProviderUnavailable
from .notifier import NotificationEvent, Notifier, get_notifier

logger = logging.getLogger(__name__)

UNASSIGNABLE = frozenset(
    {BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.IN_PROGRESS}
)

# Bookings that occupy a provider's time.
_BLOCKING = (BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS)


def _window(booking: models.Booking):
    start = booking.scheduled_start
    return start, start + timedelta(hours=booking.duration_hours or 1)


def overlaps(a: models.Booking, b: models.Booking) -> bool:
    """True when the two bookings' time ranges intersect (touching ends do not)."""
    a_start, a_end = _window(a)
    b_start, b_end = _window(b)
    return a_start < b_end and b_start < a_end


class ProviderAssignment:
    def __init__(self, notifier: Optional[Notifier] = None):
        self.notifier = notifier or get_notifier()

    def assign(self, db: Session, booking_id: int, provider_id: int) -> models.Booking:
        """Bind ``provider_id`` to the booking without touching its status."""
        with atomic(db):
            booking = crud.booking.get_booking_for_update(db, booking_id)
            if booking is None:
                raise NotFound("Booking", booking_id)
            if booking.status in UNASSIGNABLE:
                raise InvalidState("Booking", "assign provider to", booking.status)

            provider = crud.crud_directory.get_provider_for_update(db, provider_id)
            if provider is None:
                raise NotFound("Provider", provider_id)
            if not provider.is_verified:
                raise ProviderUnavailable(
                    f"Provider {provider_id} is not verified", {"provider_id": str(provider_id)}
                )
            if provider.availability_status != AvailabilityStatus.AVAILABLE:
                raise ProviderUnavailable(
                    f"Provider {provider_id} is {provider.availability_status.value}",
                    {"availability_status": provider.availability_status.value},
                )

            same_day = crud.booking.get_provider_bookings_on(
                db, provider.id, booking.scheduled_date, _BLOCKING, exclude_booking_id=booking.id
            )
            clash = next((other for other in same_day if overlaps(booking, other)), None)
            if clash is not None:
                raise ProviderUnavailable(
                    f"Provider {provider_id} already has booking {clash.id} at that time",
                    {"conflicting_booking_id": str(clash.id)},
                )

            booking.provider = provider
        logger.info("Assigned provider %s to booking %s", provider_id, booking_id)
        self.notifier.notify(
            NotificationEvent.PROVIDER_ASSIGNED,
            provider.user.email if provider.user else None,
            booking_id=booking.id,
            scheduled_date=booking.scheduled_date.isoformat(),
            scheduled_time=booking.scheduled_time.isoformat(),
        )
        return booking

    def release(self, booking: models.Booking) -> None:
        """Drop the provider binding; the booking returns to the unassigned pool."""
        booking.provider = None
        booking.provider_id = None

    def find_unassigned(self, db: Session) -> UnassignedBookings:
        return crud.booking.find_unassigned(db)
