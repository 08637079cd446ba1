from typing import Dict, Optional
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)

# Unprocessable Content
HTTP_422 = 422


class BookingEngineError(Exception):
    """Base class for guard failures raised by the booking engine."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.field_errors = field_errors or {}


class NotFound(BookingEngineError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} not found with ID: {entity_id}", {"id": str(entity_id)})
        self.entity = entity
        self.entity_id = entity_id


class InvalidState(BookingEngineError):
    """A transition was attempted from a status that does not allow it."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, entity: str, action: str, current: object, message: Optional[str] = None):
        current_value = getattr(current, "value", current)
        super().__init__(
            message or f"Cannot {action} {entity} in status {current_value}",
            {"status": str(current_value)},
        )
        self.entity = entity
        self.action = action
        self.current = current


class Conflict(BookingEngineError):
    status_code = status.HTTP_409_CONFLICT


class InvalidAmount(BookingEngineError):
    status_code = HTTP_422


class ProviderUnavailable(BookingEngineError):
    status_code = status.HTTP_409_CONFLICT


class ValidationError(BookingEngineError):
    status_code = HTTP_422


def error_response(
    message: str,
    field_errors: Dict[str, str],
    code: int = HTTP_422,
) -> HTTPException:
    """Return an HTTPException with a consistent structure and log details."""
    logger.error("%s %s", message, field_errors)
    detail = {"message": message, "field_errors": field_errors}
    return HTTPException(status_code=code, detail=detail)


def to_http(exc: BookingEngineError) -> HTTPException:
    return error_response(exc.message, exc.field_errors, exc.status_code)
