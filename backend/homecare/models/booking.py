# backend/homecare/models/booking.py

from dataclasses import dataclass
from datetime import datetime
from typing import Union

from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, String, Text, Time
from sqlalchemy.orm import relationship

from .base import BaseModel
from .booking_status import BookingPaymentStatus, BookingStatus, OPEN_FOR_ASSIGNMENT
from .types import CaseInsensitiveEnum


@dataclass(frozen=True)
class Unassigned:
    pass


@dataclass(frozen=True)
class Assigned:
    provider_id: int


Assignment = Union[Unassigned, Assigned]


class Booking(BaseModel):
    __tablename__ = "bookings"

    id          = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id  = Column(Integer, ForeignKey("services.id"), nullable=False)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=True, index=True)
    patient_id  = Column(Integer, ForeignKey("patients.id"), nullable=True)
    status      = Column(
        CaseInsensitiveEnum(BookingStatus, name="bookingstatus"),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )
    scheduled_date = Column(Date, nullable=False, index=True)
    scheduled_time = Column(Time, nullable=False)
    duration_hours = Column(Integer, nullable=False, default=1)
    total_amount   = Column(Numeric(10, 2), nullable=False)
    payment_status = Column(
        CaseInsensitiveEnum(BookingPaymentStatus, name="bookingpaymentstatus"),
        nullable=False,
        default=BookingPaymentStatus.PENDING,
    )
    special_instructions = Column(Text, nullable=True)
    notes   = Column(Text, nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    customer = relationship("User", foreign_keys=[customer_id], back_populates="bookings_as_customer")
    service  = relationship("Service", back_populates="bookings")
    provider = relationship("Provider", back_populates="bookings")
    patient  = relationship("Patient")
    payment  = relationship("Payment", back_populates="booking", uselist=False)
    rejection_requests = relationship("BookingRejectionRequest", back_populates="booking")

    @property
    def scheduled_start(self) -> datetime:
        return datetime.combine(self.scheduled_date, self.scheduled_time)

    @property
    def assignment(self) -> Assignment:
        if self.provider_id is None:
            return Unassigned()
        return Assigned(self.provider_id)

    def can_be_cancelled(self) -> bool:
        return self.status in (BookingStatus.PENDING, BookingStatus.CONFIRMED)

    def can_be_rescheduled(self) -> bool:
        return self.status in OPEN_FOR_ASSIGNMENT

    def append_note(self, text: str) -> None:
        text = (text or "").strip()
        if not text:
            return
        self.notes = f"{self.notes}\n{text}" if self.notes else text
