# backend/homecare/models/service.py
from sqlalchemy import Boolean, Column, Integer, String, Numeric, Text
from sqlalchemy.orm import relationship

from .base import BaseModel


class Service(BaseModel):
    __tablename__ = "services"

    id          = Column(Integer, primary_key=True, index=True)
    name        = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=True)
    # Hourly price; a booking's default total is price × duration_hours
    price       = Column(Numeric(10, 2), nullable=False)
    is_active   = Column(Boolean, nullable=False, default=True)

    providers = relationship("Provider", secondary="provider_services", back_populates="services")
    bookings  = relationship("Booking", back_populates="service")
