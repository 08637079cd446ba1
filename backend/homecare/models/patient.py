# backend/homecare/models/patient.py

from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from .base import BaseModel


class Patient(BaseModel):
    """Person receiving care; managed by the customer who books for them."""

    __tablename__ = "patients"

    id          = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name        = Column(String, nullable=False)
    age         = Column(Integer, nullable=True)
    medical_notes = Column(String, nullable=True)

    emergency_contact_name     = Column(String, nullable=True)
    emergency_contact_phone    = Column(String, nullable=True)
    emergency_contact_relation = Column(String, nullable=True)

    customer = relationship("User", back_populates="patients")
