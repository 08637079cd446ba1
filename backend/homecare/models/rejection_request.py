# backend/homecare/models/rejection_request.py

from sqlalchemy import Column, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import relationship

from .base import BaseModel
from .review_request import ReviewableRequestMixin


class BookingRejectionRequest(ReviewableRequestMixin, BaseModel):
    """A provider's request to be released from an assigned booking."""

    __tablename__ = "booking_rejection_requests"

    id               = Column(Integer, primary_key=True, index=True)
    booking_id       = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    provider_id      = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    rejection_reason = Column(Text, nullable=False)
    admin_notes      = Column(Text, nullable=True)
    version          = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        # At most one pending request per booking
        Index(
            "uq_rejection_pending_booking",
            "booking_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    booking  = relationship("Booking", back_populates="rejection_requests")
    provider = relationship("Provider")
