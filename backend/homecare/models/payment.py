# backend/homecare/models/payment.py

import enum
from decimal import Decimal

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel
from .types import CaseInsensitiveEnum


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


class PaymentMethod(str, enum.Enum):
    ONLINE = "online"
    CASH = "cash"
    CARD = "card"
    UPI = "upi"


class PaymentTiming(str, enum.Enum):
    ADVANCE = "advance"
    POST_SERVICE = "post_service"


class Payment(BaseModel):
    __tablename__ = "payments"

    id          = Column(Integer, primary_key=True, index=True)
    booking_id  = Column(Integer, ForeignKey("bookings.id"), nullable=False, unique=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount      = Column(Numeric(10, 2), nullable=False)
    refunded_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    currency    = Column(String(3), nullable=False, default="INR")
    method      = Column(CaseInsensitiveEnum(PaymentMethod, name="paymentmethod"), nullable=False)
    timing      = Column(
        CaseInsensitiveEnum(PaymentTiming, name="paymenttiming"),
        nullable=False,
        default=PaymentTiming.ADVANCE,
    )
    status      = Column(
        CaseInsensitiveEnum(PaymentStatus, name="paymentstatus"),
        nullable=False,
        default=PaymentStatus.PENDING,
        index=True,
    )
    gateway        = Column(String, nullable=True)
    transaction_id = Column(String, nullable=True, index=True)
    refund_id      = Column(String, nullable=True)
    invoice_number = Column(String, nullable=True, unique=True)
    paid_at        = Column(DateTime, nullable=True)
    failure_reason = Column(Text, nullable=True)
    refund_reason  = Column(Text, nullable=True)
    gateway_response = Column(Text, nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    booking  = relationship("Booking", back_populates="payment")
    customer = relationship("User")

    @property
    def refundable_amount(self) -> Decimal:
        return Decimal(self.amount) - Decimal(self.refunded_amount or 0)
