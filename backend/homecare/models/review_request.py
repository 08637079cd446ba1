# backend/homecare/models/review_request.py

import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import declared_attr, relationship

from .types import CaseInsensitiveEnum


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewableRequestMixin:
    """Columns shared by requests that an admin resolves exactly once."""

    @declared_attr
    def status(cls):
        return Column(
            CaseInsensitiveEnum(RequestStatus, name="requeststatus"),
            nullable=False,
            default=RequestStatus.PENDING,
            index=True,
        )

    @declared_attr
    def requested_at(cls):
        return Column(DateTime, nullable=False, default=datetime.now, index=True)

    @declared_attr
    def reviewed_by_id(cls):
        return Column(Integer, ForeignKey("users.id"), nullable=True)

    @declared_attr
    def reviewed_at(cls):
        return Column(DateTime, nullable=True)

    @declared_attr
    def reviewed_by(cls):
        return relationship("User", foreign_keys=f"{cls.__name__}.reviewed_by_id")

    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING
