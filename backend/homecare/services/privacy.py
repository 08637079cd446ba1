"""Time-windowed disclosure of customer and patient contact details.

Providers may see a customer's phone/address and a patient's emergency
contact only from one day before until one day after the service date
(inclusive). Customers and admins always see them. The window is evaluated
against today's date on every call.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from ..core.config import settings
from ..models import Booking, UserRole
from ..schemas.booking import (
    BookingResponse,
    CustomerView,
    PatientView,
    PrivacyAwareBookingResponse,
)


@dataclass(frozen=True)
class Disclosure:
    visible: bool
    message: str


def disclose(
    service_date: date,
    viewer_role: UserRole,
    today: Optional[date] = None,
    subject: str = "Contact details",
) -> Disclosure:
    """Return whether ``viewer_role`` may see protected fields today."""
    if viewer_role in (UserRole.CUSTOMER, UserRole.ADMIN):
        return Disclosure(True, f"{subject} available")
    if viewer_role != UserRole.PROVIDER:
        raise ValueError(f"Unknown viewer role: {viewer_role!r}")

    today = today or date.today()
    days = settings.DISCLOSURE_WINDOW_DAYS
    hours = days * 24
    window_start = service_date - timedelta(days=days)
    window_end = service_date + timedelta(days=days)

    if today < window_start:
        return Disclosure(False, f"{subject} will be available {hours} hours before service")
    if today > window_end:
        return Disclosure(
            False, f"{subject} no longer available (expired {hours} hours after service)"
        )
    return Disclosure(True, f"{subject} available for service on {service_date.isoformat()}")


def project_booking(
    booking: Booking, viewer_role: UserRole, today: Optional[date] = None
) -> PrivacyAwareBookingResponse:
    """Build the booking view for ``viewer_role`` with contact fields redacted as needed."""
    base = BookingResponse.model_validate(booking).model_dump()

    customer_view = None
    contact = None
    if booking.customer is not None:
        contact = disclose(booking.scheduled_date, viewer_role, today, "Contact details")
        customer_view = CustomerView(
            id=booking.customer.id,
            name=booking.customer.name,
            email=booking.customer.email,
            phone=booking.customer.phone if contact.visible else None,
            address=booking.customer.address if contact.visible else None,
            contact_details_available=contact.visible,
            privacy_message=contact.message,
        )

    patient_view = None
    emergency = None
    if booking.patient is not None:
        emergency = disclose(booking.scheduled_date, viewer_role, today, "Emergency contact")
        patient_view = PatientView(
            id=booking.patient.id,
            name=booking.patient.name,
            age=booking.patient.age,
            emergency_contact_name=booking.patient.emergency_contact_name,
            emergency_contact_relation=booking.patient.emergency_contact_relation,
            emergency_contact_phone=(
                booking.patient.emergency_contact_phone if emergency.visible else None
            ),
            emergency_contact_available=emergency.visible,
            privacy_message=emergency.message,
        )

    available = any(d.visible for d in (contact, emergency) if d is not None)
    if contact is not None:
        message = contact.message
    elif emergency is not None:
        message = emergency.message
    else:
        message = "Customer contact details are available"

    return PrivacyAwareBookingResponse(
        **base,
        customer=customer_view,
        patient=patient_view,
        customer_contact_available=available,
        privacy_message=message,
    )
