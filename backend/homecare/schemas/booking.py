from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime, time
from decimal import Decimal
from ..models.booking_status import BookingStatus, BookingPaymentStatus


# Properties to receive on item creation (from a customer)
class BookingCreate(BaseModel):
    service_id: int
    patient_id: Optional[int] = None
    scheduled_date: date
    scheduled_time: time
    duration_hours: int = Field(default=1, ge=1)
    # Defaults to service price × duration when omitted
    total_amount: Optional[Decimal] = Field(default=None, gt=0)
    special_instructions: Optional[str] = None


class BookingReject(BaseModel):
    reason: str = Field(min_length=1)


class BookingComplete(BaseModel):
    notes: Optional[str] = None


class BookingReschedule(BaseModel):
    scheduled_date: date
    scheduled_time: time


class BookingAssign(BaseModel):
    provider_id: int


class BookingResponse(BaseModel):
    id: int
    customer_id: int
    service_id: int
    provider_id: Optional[int] = None
    patient_id: Optional[int] = None
    status: BookingStatus
    scheduled_date: date
    scheduled_time: time
    duration_hours: int
    total_amount: Decimal
    payment_status: BookingPaymentStatus
    special_instructions: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class CustomerView(BaseModel):
    id: int
    name: str
    email: str
    # None when outside the provider disclosure window
    phone: Optional[str] = None
    address: Optional[str] = None
    contact_details_available: bool
    privacy_message: str


class PatientView(BaseModel):
    id: int
    name: str
    age: Optional[int] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_relation: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_available: bool
    privacy_message: str


class PrivacyAwareBookingResponse(BookingResponse):
    customer: Optional[CustomerView] = None
    patient: Optional[PatientView] = None
    customer_contact_available: bool
    privacy_message: str


class CancellationResponse(BaseModel):
    booking: BookingResponse
    refund_amount: Decimal
