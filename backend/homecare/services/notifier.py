"""Outbound notifications for lifecycle events.

Delivery is fire-and-forget: a failing notifier is logged and never undoes
the state change that triggered it.
"""

import enum
import logging
from typing import Any, Dict, Optional

from ..core.config import settings
from ..utils import background_worker
from ..utils.email import send_email

logger = logging.getLogger(__name__)


class NotificationEvent(str, enum.Enum):
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    PROVIDER_ASSIGNED = "provider_assigned"
    REJECTION_RESOLVED = "rejection_resolved"
    SERVICE_REQUEST_RESOLVED = "service_request_resolved"
    PAYMENT_SUCCEEDED = "payment_succeeded"


_SUBJECTS: Dict[NotificationEvent, str] = {
    NotificationEvent.BOOKING_CONFIRMED: "Booking #{booking_id} confirmed",
    NotificationEvent.BOOKING_CANCELLED: "Booking #{booking_id} cancelled",
    NotificationEvent.PROVIDER_ASSIGNED: "New assignment: booking #{booking_id}",
    NotificationEvent.REJECTION_RESOLVED: "Release request for booking #{booking_id} {outcome}",
    NotificationEvent.SERVICE_REQUEST_RESOLVED: "Service request #{request_id} {outcome}",
    NotificationEvent.PAYMENT_SUCCEEDED: "Payment received for booking #{booking_id}",
}


def format_subject(event: NotificationEvent, **context: Any) -> str:
    try:
        return _SUBJECTS[event].format(**context)
    except KeyError:
        return event.value.replace("_", " ").capitalize()


class Notifier:
    def send(self, event: NotificationEvent, recipient: str, **context: Any) -> None:
        raise NotImplementedError

    def notify(self, event: NotificationEvent, recipient: Optional[str], **context: Any) -> None:
        if not recipient:
            logger.debug("No recipient for %s; skipping", event.value)
            return
        try:
            self.send(event, recipient, **context)
        except Exception:
            logger.exception("Notification %s to %s failed", event.value, recipient)


class LoggingNotifier(Notifier):
    def send(self, event: NotificationEvent, recipient: str, **context: Any) -> None:
        logger.info(
            "notify %s -> %s: %s",
            event.value,
            recipient,
            format_subject(event, **context),
            extra={"event": event.value, "recipient": recipient},
        )


class EmailNotifier(Notifier):
    def send(self, event: NotificationEvent, recipient: str, **context: Any) -> None:
        subject = format_subject(event, **context)
        body = "\n".join(f"{k}: {v}" for k, v in sorted(context.items()))
        background_worker.submit(send_email, recipient, subject, body)


def get_notifier(name: Optional[str] = None) -> Notifier:
    key = (name or settings.NOTIFIER).lower()
    if key == "email":
        return EmailNotifier()
    if key == "log":
        return LoggingNotifier()
    raise ValueError(f"Unknown notifier: {key}")
