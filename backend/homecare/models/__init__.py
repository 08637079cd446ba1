from .user import User, UserRole
from .patient import Patient
from .service import Service
from .provider import Provider, AvailabilityStatus, provider_services
from .booking_status import BookingStatus, BookingPaymentStatus
from .booking import Booking, Assigned, Unassigned
from .review_request import RequestStatus
from .rejection_request import BookingRejectionRequest
from .service_request import ServiceCatalogRequest, RequestType, Requester
from .payment import Payment, PaymentStatus, PaymentMethod, PaymentTiming

__all__ = [
    "User",
    "UserRole",
    "Patient",
    "Service",
    "Provider",
    "AvailabilityStatus",
    "provider_services",
    "BookingStatus",
    "BookingPaymentStatus",
    "Booking",
    "Assigned",
    "Unassigned",
    "RequestStatus",
    "BookingRejectionRequest",
    "ServiceCatalogRequest",
    "RequestType",
    "Requester",
    "Payment",
    "PaymentStatus",
    "PaymentMethod",
    "PaymentTiming",
]
