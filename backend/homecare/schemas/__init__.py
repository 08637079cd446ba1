from .booking import (
    BookingCreate,
    BookingReject,
    BookingComplete,
    BookingReschedule,
    BookingAssign,
    BookingResponse,
    CustomerView,
    PatientView,
    PrivacyAwareBookingResponse,
    CancellationResponse,
)
from .requests import (
    RejectionRequestCreate,
    RequestReview,
    ServiceRequestReject,
    RejectionRequestResponse,
    ServiceRequestCreate,
    AdminServiceChange,
    ServiceRequestResponse,
)
from .payment import PaymentCreate, PaymentCallback, RefundRequest, PaymentResponse, InvoiceRead

__all__ = [
    "BookingCreate",
    "BookingReject",
    "BookingComplete",
    "BookingReschedule",
    "BookingAssign",
    "BookingResponse",
    "CustomerView",
    "PatientView",
    "PrivacyAwareBookingResponse",
    "CancellationResponse",
    "RejectionRequestCreate",
    "RequestReview",
    "ServiceRequestReject",
    "RejectionRequestResponse",
    "ServiceRequestCreate",
    "AdminServiceChange",
    "ServiceRequestResponse",
    "PaymentCreate",
    "PaymentCallback",
    "RefundRequest",
    "PaymentResponse",
    "InvoiceRead",
]
