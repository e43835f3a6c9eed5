"""Review schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from assethub.schemas.common import CamelModel


class ReviewStatus:
    """Review status values."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    NEEDS_REVISION = "NEEDS_REVISION"
    CANCELLED = "CANCELLED"


class ApproveRequest(CamelModel):
    comments: Optional[str] = None


class RejectRequest(CamelModel):
    comments: str = Field(..., description="Why the asset is rejected")
    reasons: List[str] = Field(..., description="Rejection reason codes")


class RequestChangesRequest(CamelModel):
    comments: str = Field(..., description="Summary for the uploader")
    required_changes: List[str] = Field(..., description="Changes the uploader must make")


class ReviewResponse(CamelModel):
    id: int
    asset_id: int
    reviewer_id: int
    submitted_by_id: int
    status: str
    comments: Optional[str] = None
    decided_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class PendingReviewItem(ReviewResponse):
    asset_title: str
    asset_type: str
    thumbnail_key: Optional[str] = None
