from typing import Any, List, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import models
from ..database import get_db
from ..schemas.requests import RejectionRequestCreate, RejectionRequestResponse, RequestReview
from ..services import RejectionRequestWorkflow
from .dependencies import get_current_admin, get_current_provider, get_rejection_workflow

router = APIRouter(tags=["rejection-requests"], default_response_class=ORJSONResponse)


@router.post(
    "/bookings/{booking_id}",
    response_model=RejectionRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
def request_release(
    booking_id: int,
    body: RejectionRequestCreate,
    db: Session = Depends(get_db),
    provider: models.Provider = Depends(get_current_provider),
    workflow: RejectionRequestWorkflow = Depends(get_rejection_workflow),
) -> Any:
    """Ask an admin to release the calling provider from a booking."""
    return workflow.request_rejection(db, booking_id, provider.id, body.reason)


@router.get("/", response_model=List[RejectionRequestResponse])
def read_pending_requests(
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(get_current_admin),
    workflow: RejectionRequestWorkflow = Depends(get_rejection_workflow),
) -> Any:
    return workflow.list_pending(db)


@router.get("/me", response_model=List[RejectionRequestResponse])
def read_my_requests(
    db: Session = Depends(get_db),
    provider: models.Provider = Depends(get_current_provider),
    workflow: RejectionRequestWorkflow = Depends(get_rejection_workflow),
) -> Any:
    return workflow.list_for_provider(db, provider.id)


@router.post("/{request_id}/approve", response_model=RejectionRequestResponse)
def approve_request(
    request_id: int,
    body: Optional[RequestReview] = None,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(get_current_admin),
    workflow: RejectionRequestWorkflow = Depends(get_rejection_workflow),
) -> Any:
    return workflow.approve(db, request_id, current_admin.id, body.notes if body else None)


@router.post("/{request_id}/deny", response_model=RejectionRequestResponse)
def deny_request(
    request_id: int,
    body: Optional[RequestReview] = None,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(get_current_admin),
    workflow: RejectionRequestWorkflow = Depends(get_rejection_workflow),
) -> Any:
    return workflow.deny(db, request_id, current_admin.id, body.notes if body else None)
