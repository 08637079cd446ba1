from datetime import date
from typing import Iterable, Iterator, List, Optional

from sqlalchemy.orm import Session

from .. import models
from ..models.booking_status import BookingStatus


class UnassignedBookings:
    """Lazy view over the unassigned pool, earliest-due first.

    Every iteration issues a fresh query, so the sequence can be walked again
    after assignments change.
    """

    def __init__(self, db: Session, batch_size: int = 100):
        self._db = db
        self._batch_size = batch_size

    def _query(self):
        return (
            self._db.query(models.Booking)
            .filter(models.Booking.provider_id.is_(None))
            .filter(models.Booking.status.notin_([BookingStatus.CANCELLED, BookingStatus.COMPLETED]))
            .order_by(
                models.Booking.scheduled_date.asc(),
                models.Booking.scheduled_time.asc(),
                models.Booking.id.asc(),
            )
        )

    def __iter__(self) -> Iterator[models.Booking]:
        return iter(self._query().yield_per(self._batch_size))

    def count(self) -> int:
        return self._query().count()


class CRUDBooking:
    def get_booking(self, db: Session, booking_id: int) -> Optional[models.Booking]:
        return db.query(models.Booking).filter(models.Booking.id == booking_id).first()

    def get_booking_for_update(self, db: Session, booking_id: int) -> Optional[models.Booking]:
        return (
            db.query(models.Booking)
            .filter(models.Booking.id == booking_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_bookings_by_customer(self, db: Session, customer_id: int) -> List[models.Booking]:
        return (
            db.query(models.Booking)
            .filter(models.Booking.customer_id == customer_id)
            .order_by(models.Booking.scheduled_date.desc(), models.Booking.scheduled_time.desc())
            .all()
        )

    def get_bookings_by_provider(self, db: Session, provider_id: int) -> List[models.Booking]:
        return (
            db.query(models.Booking)
            .filter(models.Booking.provider_id == provider_id)
            .order_by(models.Booking.scheduled_date.asc(), models.Booking.scheduled_time.asc())
            .all()
        )

    def get_provider_bookings_on(
        self,
        db: Session,
        provider_id: int,
        day: date,
        statuses: Iterable[BookingStatus],
        exclude_booking_id: Optional[int] = None,
    ) -> List[models.Booking]:
        q = (
            db.query(models.Booking)
            .filter(models.Booking.provider_id == provider_id)
            .filter(models.Booking.scheduled_date == day)
            .filter(models.Booking.status.in_(list(statuses)))
        )
        if exclude_booking_id is not None:
            q = q.filter(models.Booking.id != exclude_booking_id)
        return q.all()

    def count_in_progress_for_provider(
        self, db: Session, provider_id: int, exclude_booking_id: Optional[int] = None
    ) -> int:
        q = (
            db.query(models.Booking)
            .filter(models.Booking.provider_id == provider_id)
            .filter(models.Booking.status == BookingStatus.IN_PROGRESS)
        )
        if exclude_booking_id is not None:
            q = q.filter(models.Booking.id != exclude_booking_id)
        return q.count()

    def find_unassigned(self, db: Session) -> UnassignedBookings:
        return UnassignedBookings(db)


booking = CRUDBooking()
