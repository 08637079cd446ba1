from datetime import date

import pytest
from freezegun import freeze_time

from homecare.models import BookingStatus, RequestStatus
from homecare.services.notifier import NotificationEvent
from homecare.utils.errors import Conflict, InvalidState, NotFound, ValidationError


def _assigned(factory, status=BookingStatus.CONFIRMED):
    provider = factory.provider()
    booking = factory.booking(status=status, provider=provider, on=date(2030, 4, 1))
    return booking, provider


def test_request_requires_reason(db, factory, rejections):
    booking, provider = _assigned(factory)
    with pytest.raises(ValidationError):
        rejections.request_rejection(db, booking.id, provider.id, "   ")


def test_request_requires_binding_to_that_provider(db, factory, rejections):
    booking, _ = _assigned(factory)
    stranger = factory.provider()
    with pytest.raises(InvalidState):
        rejections.request_rejection(db, booking.id, stranger.id, "sick")


def test_request_requires_open_booking(db, factory, rejections):
    booking, provider = _assigned(factory, status=BookingStatus.IN_PROGRESS)
    with pytest.raises(InvalidState):
        rejections.request_rejection(db, booking.id, provider.id, "sick")


def test_only_one_pending_request_per_booking(db, factory, rejections):
    booking, provider = _assigned(factory)
    first = rejections.request_rejection(db, booking.id, provider.id, "emergency")

    with pytest.raises(Conflict):
        rejections.request_rejection(db, booking.id, provider.id, "still an emergency")

    assert rejections.count_pending(db) == 1
    assert rejections.pending_for_booking(db, booking.id).id == first.id


@freeze_time("2030-03-20 10:00:00")
def test_approve_releases_booking_then_new_request_allowed(db, factory, rejections, assignment, notifier):
    booking, provider = _assigned(factory)
    admin = factory.admin()

    request = rejections.request_rejection(db, booking.id, provider.id, "emergency")
    rejections.approve(db, request.id, admin.id, "reassigned")

    assert request.status == RequestStatus.APPROVED
    assert request.reviewed_by_id == admin.id
    assert request.reviewed_at is not None
    assert request.admin_notes == "reassigned"
    assert booking.provider_id is None
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.id in [b.id for b in assignment.find_unassigned(db)]
    assert NotificationEvent.REJECTION_RESOLVED in notifier.events()

    # a new provider may take it and file their own request
    replacement = factory.provider()
    assignment.assign(db, booking.id, replacement.id)
    again = rejections.request_rejection(db, booking.id, replacement.id, "schedule clash")
    assert again.status == RequestStatus.PENDING


def test_deny_keeps_provider_bound(db, factory, rejections, assignment):
    booking, provider = _assigned(factory)
    admin = factory.admin()
    request = rejections.request_rejection(db, booking.id, provider.id, "tired")

    rejections.deny(db, request.id, admin.id, "please attend")

    assert request.status == RequestStatus.REJECTED
    assert booking.provider_id == provider.id
    assert booking.id not in [b.id for b in assignment.find_unassigned(db)]


def test_request_is_resolved_only_once(db, factory, rejections):
    booking, provider = _assigned(factory)
    admin = factory.admin()
    request = rejections.request_rejection(db, booking.id, provider.id, "emergency")
    rejections.deny(db, request.id, admin.id)

    with pytest.raises(InvalidState):
        rejections.approve(db, request.id, admin.id)
    with pytest.raises(InvalidState):
        rejections.deny(db, request.id, admin.id)
    assert booking.provider_id == provider.id


def test_approve_refused_when_booking_no_longer_open(db, factory, rejections):
    booking, provider = _assigned(factory)
    admin = factory.admin()
    request = rejections.request_rejection(db, booking.id, provider.id, "emergency")
    booking.status = BookingStatus.IN_PROGRESS
    db.commit()

    with pytest.raises(InvalidState):
        rejections.approve(db, request.id, admin.id)


def test_only_admins_resolve(db, factory, rejections):
    booking, provider = _assigned(factory)
    customer = factory.customer()
    request = rejections.request_rejection(db, booking.id, provider.id, "emergency")
    with pytest.raises(NotFound):
        rejections.approve(db, request.id, customer.id)


def test_listing(db, factory, rejections):
    booking, provider = _assigned(factory)
    other_booking, other_provider = _assigned(factory)
    rejections.request_rejection(db, booking.id, provider.id, "a")
    rejections.request_rejection(db, other_booking.id, other_provider.id, "b")

    assert len(rejections.list_pending(db)) == 2
    assert [r.booking_id for r in rejections.list_for_provider(db, provider.id)] == [booking.id]
