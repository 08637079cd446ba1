# backend/homecare/models/service_request.py

import enum

from sqlalchemy import Column, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import relationship

from .base import BaseModel
from .review_request import ReviewableRequestMixin
from .types import CaseInsensitiveEnum


class RequestType(str, enum.Enum):
    ADD = "add"
    REMOVE = "remove"


class Requester(str, enum.Enum):
    PROVIDER = "provider"
    ADMIN = "admin"


class ServiceCatalogRequest(ReviewableRequestMixin, BaseModel):
    """Request to add or remove a service from a provider's offerable set."""

    __tablename__ = "provider_service_requests"

    id           = Column(Integer, primary_key=True, index=True)
    provider_id  = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    service_id   = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    request_type = Column(CaseInsensitiveEnum(RequestType, name="requesttype"), nullable=False)
    requested_by = Column(CaseInsensitiveEnum(Requester, name="requester"), nullable=False)
    rejection_reason = Column(Text, nullable=True)
    notes        = Column(Text, nullable=True)
    version      = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        Index(
            "uq_service_request_pending",
            "provider_id",
            "service_id",
            "request_type",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    provider = relationship("Provider")
    service  = relationship("Service")
