from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ..core.config import settings
from ..models import Booking, BookingPaymentStatus, BookingStatus

_CENTS = Decimal("0.01")


def refund_amount(
    booking: Booking,
    now: Optional[datetime] = None,
    partial_rate: Optional[Decimal] = None,
) -> Decimal:
    """Return how much of a cancelled, paid booking goes back to the customer.

    Full refund before the scheduled start, ``PARTIAL_REFUND_RATE`` of the
    total afterwards, nothing for bookings that are not cancelled or not paid.
    """
    if booking.status != BookingStatus.CANCELLED or booking.payment_status != BookingPaymentStatus.PAID:
        return Decimal("0.00")

    now = now or datetime.now()
    total = Decimal(booking.total_amount)
    if now < booking.scheduled_start:
        return total.quantize(_CENTS, rounding=ROUND_HALF_UP)

    rate = settings.PARTIAL_REFUND_RATE if partial_rate is None else Decimal(partial_rate)
    return (total * rate).quantize(_CENTS, rounding=ROUND_HALF_UP)
