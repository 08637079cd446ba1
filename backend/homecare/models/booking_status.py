import enum


class BookingStatus(str, enum.Enum):
    """Central booking status enumeration used across the application."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    # Legacy marker for rows moved by older clients; reschedule no longer sets it.
    RESCHEDULED = "rescheduled"


# Statuses in which a booking may sit without a provider and be (re)assigned.
OPEN_FOR_ASSIGNMENT = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.RESCHEDULED}
)


class BookingPaymentStatus(str, enum.Enum):
    """Payment state mirrored on the booking, kept in lockstep with Payment."""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"
