from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from ..models.payment import PaymentMethod, PaymentStatus, PaymentTiming


class PaymentCreate(BaseModel):
    booking_id: int
    method: PaymentMethod = PaymentMethod.ONLINE
    timing: PaymentTiming = PaymentTiming.ADVANCE


class PaymentCallback(BaseModel):
    """Outcome reported back by the gateway for a payment."""

    success: bool
    transaction_id: Optional[str] = None
    failure_reason: Optional[str] = None
    gateway_response: Optional[str] = None

    @model_validator(mode="after")
    def require_transaction_on_success(self):
        if self.success and not (self.transaction_id or "").strip():
            raise ValueError("transaction_id is required when success is true")
        return self


class RefundRequest(BaseModel):
    amount: Decimal
    reason: Optional[str] = None


class PaymentResponse(BaseModel):
    id: int
    booking_id: int
    customer_id: int
    amount: Decimal
    refunded_amount: Decimal
    currency: str
    method: PaymentMethod
    timing: PaymentTiming
    status: PaymentStatus
    gateway: Optional[str] = None
    transaction_id: Optional[str] = None
    invoice_number: Optional[str] = None
    paid_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    refund_reason: Optional[str] = None

    model_config = {"from_attributes": True}


class InvoiceRead(BaseModel):
    invoice_number: str
    payment_id: int
    booking_id: int
    customer_id: int
    amount: Decimal = Field(description="Amount charged")
    refunded_amount: Decimal
    net_amount: Decimal
    currency: str
    method: PaymentMethod
    status: PaymentStatus
    paid_at: Optional[datetime] = None
