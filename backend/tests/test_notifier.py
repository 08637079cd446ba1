import logging

from homecare.services import notifier as notifier_module
from homecare.services.notifier import (
    EmailNotifier,
    LoggingNotifier,
    NotificationEvent,
    Notifier,
    format_subject,
    get_notifier,
)


class ExplodingNotifier(Notifier):
    def send(self, event, recipient, **context):
        raise RuntimeError("smtp down")


def test_format_subject():
    assert format_subject(NotificationEvent.BOOKING_CONFIRMED, booking_id=7) == "Booking #7 confirmed"
    assert format_subject(NotificationEvent.BOOKING_CONFIRMED) == "Booking confirmed"


def test_logging_notifier_logs(caplog):
    caplog.set_level(logging.INFO, logger="homecare.services.notifier")
    LoggingNotifier().notify(NotificationEvent.BOOKING_CANCELLED, "a@example.com", booking_id=3)
    assert any("Booking #3 cancelled" in r.getMessage() for r in caplog.records)


def test_failures_are_logged_not_raised(caplog):
    caplog.set_level(logging.ERROR, logger="homecare.services.notifier")
    ExplodingNotifier().notify(NotificationEvent.PAYMENT_SUCCEEDED, "a@example.com", booking_id=1)
    assert any("failed" in r.getMessage() for r in caplog.records)


def test_missing_recipient_is_skipped():
    sent = []

    class Recording(Notifier):
        def send(self, event, recipient, **context):
            sent.append(recipient)

    Recording().notify(NotificationEvent.PROVIDER_ASSIGNED, None, booking_id=1)
    assert sent == []


def test_email_notifier_queues_mail(monkeypatch):
    calls = []

    def fake_submit(func, *args, **kwargs):
        calls.append((func, args))

    monkeypatch.setattr(notifier_module.background_worker, "submit", fake_submit)
    EmailNotifier().notify(NotificationEvent.BOOKING_CONFIRMED, "c@example.com", booking_id=5)

    assert len(calls) == 1
    func, args = calls[0]
    assert func is notifier_module.send_email
    assert args[0] == "c@example.com"
    assert args[1] == "Booking #5 confirmed"
    assert "booking_id: 5" in args[2]


def test_get_notifier():
    assert isinstance(get_notifier("log"), LoggingNotifier)
    assert isinstance(get_notifier("email"), EmailNotifier)
