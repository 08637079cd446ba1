# backend/homecare/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse

from . import models  # noqa: F401  registers tables on Base.metadata
from .api import api_booking, api_payment, api_rejection_request, api_service_request
from .core.config import settings
from .core.observability import setup_logging
from .database import Base, engine
from .utils.errors import HTTP_422, BookingEngineError, to_http
from .utils.status_logger import register_status_listeners

# Configure logging before creating any loggers
setup_logging()
logger = logging.getLogger(__name__)

register_status_listeners()

app = FastAPI(title="Home-care Booking API", default_response_class=ORJSONResponse)


@app.on_event("startup")
def create_tables() -> None:
    Base.metadata.create_all(bind=engine)


@app.exception_handler(BookingEngineError)
async def booking_engine_exception_handler(request: Request, exc: BookingEngineError):
    """Render guard failures with the standard ``{"message", "field_errors"}`` detail."""
    http_exc = to_http(exc)
    logger.info("%s at %s: %s", type(exc).__name__, request.url.path, exc.message)
    return ORJSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.warning("Validation error at %s: %s", request.url.path, errors)
    field_errors = {
        ".".join(str(p) for p in err.get("loc", ()) if p != "body"): err.get("msg", "invalid")
        for err in errors
    }
    return ORJSONResponse(
        status_code=HTTP_422,
        content={"detail": {"message": "Validation error", "field_errors": field_errors}},
    )


@app.get("/healthz", tags=["health"])
def healthz():
    return {"status": "ok"}


api_prefix = settings.API_V1_STR

app.include_router(api_booking.router, prefix=f"{api_prefix}/bookings", tags=["bookings"])
app.include_router(
    api_rejection_request.router,
    prefix=f"{api_prefix}/rejection-requests",
    tags=["rejection-requests"],
)
app.include_router(
    api_service_request.router,
    prefix=f"{api_prefix}/service-requests",
    tags=["service-requests"],
)
app.include_router(api_payment.router, prefix=f"{api_prefix}/payments", tags=["payments"])
