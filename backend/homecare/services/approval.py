"""Single-resolution review shared by rejection and catalog requests.

A request starts PENDING and is resolved once, to APPROVED or REJECTED,
stamping who reviewed it and when. Resolving a request that is no longer
pending is refused.
"""

from datetime import datetime
from typing import Optional

from ..models.review_request import RequestStatus, ReviewableRequestMixin
from ..utils.errors import InvalidState

RESOLUTIONS = frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED})


def resolve(
    request: ReviewableRequestMixin,
    outcome: RequestStatus,
    reviewer_id: int,
    now: Optional[datetime] = None,
) -> None:
    if outcome not in RESOLUTIONS:
        raise ValueError(f"{outcome!r} is not a resolution")
    if not request.is_pending():
        raise InvalidState(
            type(request).__name__, f"resolve to {outcome.value}", request.status
        )
    request.status = outcome
    request.reviewed_by_id = reviewer_id
    request.reviewed_at = now or datetime.now()
