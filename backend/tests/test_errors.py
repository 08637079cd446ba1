import logging
import warnings

import pytest
from fastapi import HTTPException

from homecare.models import BookingStatus, RequestStatus
from homecare.services import approval
from homecare.utils.errors import (
    Conflict,
    InvalidAmount,
    InvalidState,
    NotFound,
    ProviderUnavailable,
    ValidationError,
    error_response,
    to_http,
)


def test_error_response_logs(caplog):
    caplog.set_level(logging.ERROR, logger="homecare.utils.errors")
    with pytest.raises(HTTPException):
        raise error_response("Invalid", {"field": "bad"})
    assert any(
        "Invalid" in r.getMessage() and "'field': 'bad'" in r.getMessage()
        for r in caplog.records
    )


@pytest.mark.parametrize(
    "exc,code",
    [
        (NotFound("Booking", 1), 404),
        (InvalidState("Booking", "accept", BookingStatus.CONFIRMED), 409),
        (Conflict("dup"), 409),
        (InvalidAmount("too much"), 422),
        (ProviderUnavailable("busy"), 409),
        (ValidationError("bad"), 422),
    ],
)
def test_to_http_status(exc, code):
    http = to_http(exc)
    assert http.status_code == code
    assert http.detail["message"] == exc.message


def test_invalid_state_message():
    exc = InvalidState("Booking", "accept", BookingStatus.CONFIRMED)
    assert exc.message == "Cannot accept Booking in status confirmed"
    assert exc.field_errors == {"status": "confirmed"}


def test_resolve_only_from_pending(db, factory, rejections):
    provider = factory.provider()
    booking = factory.booking(provider=provider)
    request = rejections.request_rejection(db, booking.id, provider.id, "sick")

    approval.resolve(request, RequestStatus.REJECTED, reviewer_id=1)
    assert request.status == RequestStatus.REJECTED
    with pytest.raises(InvalidState):
        approval.resolve(request, RequestStatus.APPROVED, reviewer_id=1)
    with pytest.raises(ValueError):
        approval.resolve(request, RequestStatus.PENDING, reviewer_id=1)


def test_unprocessable_codes_do_not_warn():
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        assert to_http(InvalidAmount("too much")).status_code == 422
        assert to_http(ValidationError("bad")).status_code == 422
        assert error_response("bad", {}).status_code == 422
