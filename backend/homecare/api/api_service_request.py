from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import models
from ..database import get_db
from ..schemas.requests import (
    AdminServiceChange,
    ServiceRequestCreate,
    ServiceRequestReject,
    ServiceRequestResponse,
)
from ..services import CatalogRequestWorkflow
from .dependencies import get_catalog_workflow, get_current_admin, get_current_provider

router = APIRouter(tags=["service-requests"], default_response_class=ORJSONResponse)


@router.post("/", response_model=ServiceRequestResponse, status_code=status.HTTP_201_CREATED)
def request_service_change(
    body: ServiceRequestCreate,
    db: Session = Depends(get_db),
    provider: models.Provider = Depends(get_current_provider),
    workflow: CatalogRequestWorkflow = Depends(get_catalog_workflow),
) -> Any:
    return workflow.request_change(db, provider.id, body.service_id, body.request_type, body.notes)


@router.post("/admin", response_model=ServiceRequestResponse, status_code=status.HTTP_201_CREATED)
def admin_service_change(
    body: AdminServiceChange,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(get_current_admin),
    workflow: CatalogRequestWorkflow = Depends(get_catalog_workflow),
) -> Any:
    return workflow.admin_change(
        db, current_admin.id, body.provider_id, body.service_id, body.request_type, body.notes
    )


@router.get("/", response_model=List[ServiceRequestResponse])
def read_pending_service_requests(
    provider_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(get_current_admin),
    workflow: CatalogRequestWorkflow = Depends(get_catalog_workflow),
) -> Any:
    return workflow.list_pending(db, provider_id)


@router.post("/{request_id}/approve", response_model=ServiceRequestResponse)
def approve_service_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(get_current_admin),
    workflow: CatalogRequestWorkflow = Depends(get_catalog_workflow),
) -> Any:
    return workflow.approve(db, request_id, current_admin.id)


@router.post("/{request_id}/reject", response_model=ServiceRequestResponse)
def reject_service_request(
    request_id: int,
    body: ServiceRequestReject,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(get_current_admin),
    workflow: CatalogRequestWorkflow = Depends(get_catalog_workflow),
) -> Any:
    return workflow.reject(db, request_id, current_admin.id, body.reason)
