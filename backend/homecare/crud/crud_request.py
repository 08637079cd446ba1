from typing import List, Optional

from sqlalchemy.orm import Session

from .. import models
from ..models.review_request import RequestStatus


def get_rejection_request_for_update(db: Session, request_id: int) -> Optional[models.BookingRejectionRequest]:
    return (
        db.query(models.BookingRejectionRequest)
        .filter(models.BookingRejectionRequest.id == request_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def find_pending_rejection(db: Session, booking_id: int) -> Optional[models.BookingRejectionRequest]:
    return (
        db.query(models.BookingRejectionRequest)
        .filter(
            models.BookingRejectionRequest.booking_id == booking_id,
            models.BookingRejectionRequest.status == RequestStatus.PENDING,
        )
        .first()
    )


def list_pending_rejections(db: Session) -> List[models.BookingRejectionRequest]:
    return (
        db.query(models.BookingRejectionRequest)
        .filter(models.BookingRejectionRequest.status == RequestStatus.PENDING)
        .order_by(models.BookingRejectionRequest.requested_at.asc())
        .all()
    )


def list_rejections_by_provider(db: Session, provider_id: int) -> List[models.BookingRejectionRequest]:
    return (
        db.query(models.BookingRejectionRequest)
        .filter(models.BookingRejectionRequest.provider_id == provider_id)
        .order_by(models.BookingRejectionRequest.requested_at.desc())
        .all()
    )


def count_pending_rejections(db: Session) -> int:
    return (
        db.query(models.BookingRejectionRequest)
        .filter(models.BookingRejectionRequest.status == RequestStatus.PENDING)
        .count()
    )


def get_service_request_for_update(db: Session, request_id: int) -> Optional[models.ServiceCatalogRequest]:
    return (
        db.query(models.ServiceCatalogRequest)
        .filter(models.ServiceCatalogRequest.id == request_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def find_pending_service_request(
    db: Session, provider_id: int, service_id: int, request_type: models.RequestType
) -> Optional[models.ServiceCatalogRequest]:
    return (
        db.query(models.ServiceCatalogRequest)
        .filter(
            models.ServiceCatalogRequest.provider_id == provider_id,
            models.ServiceCatalogRequest.service_id == service_id,
            models.ServiceCatalogRequest.request_type == request_type,
            models.ServiceCatalogRequest.status == RequestStatus.PENDING,
        )
        .first()
    )


def list_pending_service_requests(
    db: Session, provider_id: Optional[int] = None
) -> List[models.ServiceCatalogRequest]:
    q = db.query(models.ServiceCatalogRequest).filter(
        models.ServiceCatalogRequest.status == RequestStatus.PENDING
    )
    if provider_id is not None:
        q = q.filter(models.ServiceCatalogRequest.provider_id == provider_id)
    return q.order_by(models.ServiceCatalogRequest.requested_at.asc()).all()
