# backend/homecare/models/provider.py

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from ..database import Base
from .base import BaseModel
from .types import CaseInsensitiveEnum
import enum


class AvailabilityStatus(str, enum.Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFF_DUTY = "off_duty"
    ON_LEAVE = "on_leave"


# Offerable service set; mutated only through approved catalog requests.
provider_services = Table(
    "provider_services",
    Base.metadata,
    Column("provider_id", Integer, ForeignKey("providers.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", Integer, ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class Provider(BaseModel):
    """ORM model representing a care provider."""

    __tablename__ = "providers"

    id          = Column(Integer, primary_key=True, index=True)
    user_id     = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    name        = Column(String, nullable=False)
    phone       = Column(String, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    availability_status = Column(
        CaseInsensitiveEnum(AvailabilityStatus, name="availabilitystatus"),
        nullable=False,
        default=AvailabilityStatus.AVAILABLE,
    )

    user     = relationship("User", back_populates="provider_profile")
    services = relationship("Service", secondary=provider_services, back_populates="providers")
    bookings = relationship("Booking", back_populates="provider")

    def offers(self, service_id: int) -> bool:
        return any(s.id == service_id for s in self.services)
