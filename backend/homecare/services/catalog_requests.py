import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from .. import crud, models
from ..database import atomic
from ..models import RequestStatus, RequestType, Requester
from ..utils.errors import Conflict, InvalidState, NotFound, ValidationError
from . import approval
from .notifier import NotificationEvent, Notifier, get_notifier

logger = logging.getLogger(__name__)


def _check_applicable(provider: models.Provider, service: models.Service, request_type: RequestType) -> None:
    offered = provider.offers(service.id)
    if request_type == RequestType.ADD and offered:
        raise InvalidState(
            "Service request",
            "add",
            "offered",
            f"Provider {provider.id} already offers service {service.id}",
        )
    if request_type == RequestType.REMOVE and not offered:
        raise InvalidState(
            "Service request",
            "remove",
            "not offered",
            f"Provider {provider.id} does not offer service {service.id}",
        )


def _apply(provider: models.Provider, service: models.Service, request_type: RequestType) -> None:
    if request_type == RequestType.ADD:
        if not provider.offers(service.id):
            provider.services.append(service)
    elif provider.offers(service.id):
        provider.services.remove(service)


class CatalogRequestWorkflow:
    """Changes to the set of services a provider may be booked for."""

    def __init__(self, notifier: Optional[Notifier] = None):
        self.notifier = notifier or get_notifier()

    def _provider_and_service(self, db: Session, provider_id: int, service_id: int):
        provider = crud.crud_directory.get_provider_for_update(db, provider_id)
        if provider is None:
            raise NotFound("Provider", provider_id)
        service = crud.crud_directory.get_service(db, service_id)
        if service is None:
            raise NotFound("Service", service_id)
        return provider, service

    def _admin(self, db: Session, admin_id: int) -> models.User:
        admin = crud.crud_directory.get_admin(db, admin_id)
        if admin is None:
            raise NotFound("Admin", admin_id)
        return admin

    def _load(self, db: Session, request_id: int) -> models.ServiceCatalogRequest:
        request = crud.crud_request.get_service_request_for_update(db, request_id)
        if request is None:
            raise NotFound("Service request", request_id)
        return request

    def request_change(
        self,
        db: Session,
        provider_id: int,
        service_id: int,
        request_type: RequestType,
        notes: Optional[str] = None,
    ) -> models.ServiceCatalogRequest:
        request_type = RequestType(request_type)
        with atomic(db):
            provider, service = self._provider_and_service(db, provider_id, service_id)
            _check_applicable(provider, service, request_type)
            if crud.crud_request.find_pending_service_request(db, provider_id, service_id, request_type):
                raise Conflict(
                    f"A pending {request_type.value} request already exists for this service",
                    {"service_id": str(service_id), "request_type": request_type.value},
                )
            request = models.ServiceCatalogRequest(
                provider=provider,
                service=service,
                request_type=request_type,
                requested_by=Requester.PROVIDER,
                status=RequestStatus.PENDING,
                notes=notes,
            )
            db.add(request)
            db.flush()
        logger.info(
            "Provider %s requested %s of service %s", provider_id, request_type.value, service_id
        )
        return request

    def admin_change(
        self,
        db: Session,
        admin_id: int,
        provider_id: int,
        service_id: int,
        request_type: RequestType,
        notes: Optional[str] = None,
    ) -> models.ServiceCatalogRequest:
        """Apply a catalog change directly, recording it as an approved request."""
        request_type = RequestType(request_type)
        with atomic(db):
            admin = self._admin(db, admin_id)
            provider, service = self._provider_and_service(db, provider_id, service_id)
            _check_applicable(provider, service, request_type)
            now = datetime.now()
            request = models.ServiceCatalogRequest(
                provider=provider,
                service=service,
                request_type=request_type,
                requested_by=Requester.ADMIN,
                status=RequestStatus.APPROVED,
                requested_at=now,
                reviewed_by_id=admin.id,
                reviewed_at=now,
                notes=notes,
            )
            db.add(request)
            _apply(provider, service, request_type)
            db.flush()
        self._notify(request, "approved")
        return request

    def approve(self, db: Session, request_id: int, admin_id: int) -> models.ServiceCatalogRequest:
        with atomic(db):
            admin = self._admin(db, admin_id)
            request = self._load(db, request_id)
            approval.resolve(request, RequestStatus.APPROVED, admin.id)
            provider, service = self._provider_and_service(db, request.provider_id, request.service_id)
            _apply(provider, service, request.request_type)
        self._notify(request, "approved")
        return request

    def reject(
        self, db: Session, request_id: int, admin_id: int, reason: str
    ) -> models.ServiceCatalogRequest:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Rejection reason is required", {"reason": "required"})
        with atomic(db):
            admin = self._admin(db, admin_id)
            request = self._load(db, request_id)
            approval.resolve(request, RequestStatus.REJECTED, admin.id)
            request.rejection_reason = reason
        self._notify(request, "rejected")
        return request

    def list_pending(self, db: Session, provider_id: Optional[int] = None) -> List[models.ServiceCatalogRequest]:
        return crud.crud_request.list_pending_service_requests(db, provider_id)

    def _notify(self, request: models.ServiceCatalogRequest, outcome: str) -> None:
        user = request.provider.user if request.provider is not None else None
        self.notifier.notify(
            NotificationEvent.SERVICE_REQUEST_RESOLVED,
            user.email if user else None,
            request_id=request.id,
            service_id=request.service_id,
            request_type=request.request_type.value,
            outcome=outcome,
        )
