"""Review endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from assethub.api.deps import get_current_user, get_db, get_tenant_id, require_permission
from assethub.errors import NotFoundError
from assethub.models.user import User
from assethub.permissions import Permission
from assethub.schemas.review import (
    ApproveRequest,
    PendingReviewItem,
    RejectRequest,
    RequestChangesRequest,
    ReviewResponse,
)
from assethub.services import review_service

router = APIRouter()


@router.get("/pending", response_model=List[PendingReviewItem])
def list_pending_reviews(
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.ASSET_REVIEW)),
    db: Session = Depends(get_db),
):
    """Pending reviews assigned to the caller (all of them for managers)."""
    reviews = review_service.list_pending_reviews(db, tenant_id, user)
    return [
        PendingReviewItem(
            **ReviewResponse.model_validate(r).model_dump(),
            asset_title=r.asset.title,
            asset_type=r.asset.type,
            thumbnail_key=r.asset.thumbnail_key,
        )
        for r in reviews
    ]


@router.get("/{review_id}", response_model=ReviewResponse)
def get_review(
    review_id: int,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    review = review_service.get_review(db, review_id, tenant_id)
    if not review_service.can_view_review(review, user):
        raise NotFoundError(f"Review {review_id} not found")
    return ReviewResponse.model_validate(review)


@router.post("/{review_id}/approve", response_model=ReviewResponse)
def approve_review(
    review_id: int,
    request: Optional[ApproveRequest] = None,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Approve a pending review; the asset becomes ready for publishing."""
    review = review_service.get_review(db, review_id, tenant_id)
    comments = request.comments if request else None
    review = review_service.approve(db, review, user, comments=comments)
    return ReviewResponse.model_validate(review)


@router.post("/{review_id}/reject", response_model=ReviewResponse)
def reject_review(
    review_id: int,
    request: RejectRequest,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Reject a pending review. Comments and reasons are required."""
    review = review_service.get_review(db, review_id, tenant_id)
    review = review_service.reject(db, review, user, request.comments, request.reasons)
    return ReviewResponse.model_validate(review)


@router.post("/{review_id}/request-changes", response_model=ReviewResponse)
def request_changes(
    review_id: int,
    request: RequestChangesRequest,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Send the asset back to its uploader for a revised upload."""
    review = review_service.get_review(db, review_id, tenant_id)
    review = review_service.request_changes(db, review, user, request.comments, request.required_changes)
    return ReviewResponse.model_validate(review)
