# backend/homecare/models/user.py

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship
from .base import BaseModel
from .types import CaseInsensitiveEnum
import enum


class UserRole(str, enum.Enum):
    """Enumeration of all supported user roles."""

    CUSTOMER = "customer"
    PROVIDER = "provider"
    ADMIN = "admin"


class User(BaseModel):
    __tablename__ = "users"

    id        = Column(Integer, primary_key=True, index=True)
    email     = Column(String, unique=True, index=True, nullable=False)
    name      = Column(String, nullable=False)
    phone     = Column(String, nullable=True)
    address   = Column(String, nullable=True)
    role      = Column(CaseInsensitiveEnum(UserRole, name="userrole"), nullable=False)
    is_active = Column(Boolean, default=True)

    # ↔–↔ If this user is a provider, they get exactly one profile here:
    provider_profile = relationship("Provider", back_populates="user", uselist=False)

    patients = relationship("Patient", back_populates="customer")

    bookings_as_customer = relationship(
        "Booking",
        foreign_keys="Booking.customer_id",
        back_populates="customer",
    )
