from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..models.review_request import RequestStatus
from ..models.service_request import RequestType, Requester


class RejectionRequestCreate(BaseModel):
    reason: str = Field(min_length=1)


class RequestReview(BaseModel):
    notes: Optional[str] = None


class ServiceRequestReject(BaseModel):
    reason: str = Field(min_length=1)


class RejectionRequestResponse(BaseModel):
    id: int
    booking_id: int
    provider_id: int
    rejection_reason: str
    status: RequestStatus
    requested_at: datetime
    reviewed_by_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    admin_notes: Optional[str] = None

    model_config = {"from_attributes": True}


class ServiceRequestCreate(BaseModel):
    service_id: int
    request_type: RequestType
    notes: Optional[str] = None


class AdminServiceChange(ServiceRequestCreate):
    provider_id: int


class ServiceRequestResponse(BaseModel):
    id: int
    provider_id: int
    service_id: int
    request_type: RequestType
    requested_by: Requester
    status: RequestStatus
    requested_at: datetime
    reviewed_by_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}
