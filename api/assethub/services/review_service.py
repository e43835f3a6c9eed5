"""Review workflow.

A review moves ``PENDING -> APPROVED | REJECTED | NEEDS_REVISION``; only
PENDING accepts a transition. Each transition updates the review, the
asset flags, the activity log and the uploader's notification in a single
transaction. The review row is updated with a conditional
``UPDATE ... WHERE status = 'PENDING'`` so two concurrent decisions cannot
both apply.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from assethub.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from assethub.models.asset import Asset
from assethub.models.review import Review
from assethub.models.user import User
from assethub.permissions import Permission, Role, has_permission
from assethub.schemas.asset import ProcessingStatus
from assethub.schemas.events import (
    AssetApproved,
    AssetRejected,
    AssetSubmittedForReview,
    ChangesRequested,
)
from assethub.schemas.review import ReviewStatus
from assethub.services.activity_service import ActivitySink, activity_sink
from assethub.services.asset_service import get_asset, set_processing_status

logger = logging.getLogger(__name__)


class ReviewNotFoundError(NotFoundError):
    """Review not found."""


class InvalidReviewStateError(ConflictError):
    """Review is not in a state that accepts the operation."""


def get_review(db: Session, review_id: int, tenant_id: int) -> Review:
    review = db.query(Review).filter(Review.id == review_id, Review.tenant_id == tenant_id).first()
    if not review:
        raise ReviewNotFoundError(f"Review {review_id} not found")
    return review


def get_pending_review(db: Session, asset_id: int) -> Optional[Review]:
    return (
        db.query(Review)
        .filter(Review.asset_id == asset_id, Review.status == ReviewStatus.PENDING)
        .first()
    )


def can_view_review(review: Review, user: User) -> bool:
    return (
        user.id in (review.reviewer_id, review.submitted_by_id, review.asset.uploaded_by_id)
        or has_permission(user.role, Permission.REVIEW_MANAGE)
    )


def list_pending_reviews(db: Session, tenant_id: int, user: User) -> List[Review]:
    """The caller's review queue; managers see every pending review."""
    query = db.query(Review).filter(
        Review.tenant_id == tenant_id, Review.status == ReviewStatus.PENDING
    )
    if not has_permission(user.role, Permission.REVIEW_MANAGE):
        query = query.filter(Review.reviewer_id == user.id)
    return query.order_by(Review.created_at.asc(), Review.id.asc()).all()


def pick_reviewer(db: Session, tenant_id: int, exclude_user_id: int) -> Optional[User]:
    """Active review-capable user with the fewest pending reviews."""
    pending_count = (
        db.query(Review.reviewer_id, func.count(Review.id).label("pending"))
        .filter(Review.status == ReviewStatus.PENDING)
        .group_by(Review.reviewer_id)
        .subquery()
    )
    return (
        db.query(User)
        .outerjoin(pending_count, pending_count.c.reviewer_id == User.id)
        .filter(
            User.tenant_id == tenant_id,
            User.is_active.is_(True),
            User.role.in_(Role.REVIEW_CAPABLE),
            User.id != exclude_user_id,
        )
        .order_by(func.coalesce(pending_count.c.pending, 0).asc(), User.id.asc())
        .first()
    )


def submit_for_review(
    db: Session,
    asset_id: int,
    tenant_id: int,
    actor: User,
    sink: ActivitySink = activity_sink,
) -> Review:
    """
    Open a review for a processed asset and assign a reviewer.

    Raises:
        ForbiddenError: If the actor neither owns the asset nor manages reviews
        InvalidReviewStateError: If the asset is not reviewable, already under
            review, or no reviewer is available
    """
    asset = get_asset(db, asset_id, tenant_id)

    if asset.uploaded_by_id != actor.id and not has_permission(actor.role, Permission.REVIEW_MANAGE):
        raise ForbiddenError("Only the uploader or a content manager can submit this asset")
    if asset.processing_status != ProcessingStatus.COMPLETED:
        raise InvalidReviewStateError(
            f"Asset must finish processing before review (status {asset.processing_status})"
        )
    if get_pending_review(db, asset.id):
        raise InvalidReviewStateError("Asset already has a pending review")

    reviewer = pick_reviewer(db, tenant_id, exclude_user_id=asset.uploaded_by_id)
    if reviewer is None:
        raise InvalidReviewStateError("No reviewers are available")

    review = Review(
        tenant_id=tenant_id,
        asset_id=asset.id,
        reviewer_id=reviewer.id,
        submitted_by_id=actor.id,
        status=ReviewStatus.PENDING,
    )

    try:
        db.add(review)
        db.flush()
        sink.log(
            db,
            AssetSubmittedForReview(
                tenant_id=tenant_id,
                user_id=actor.id,
                asset_id=asset.id,
                asset_title=asset.title,
                review_id=review.id,
                reviewer_id=reviewer.id,
            ),
        )
        db.commit()
    except IntegrityError:
        # Lost the race against a concurrent submission
        db.rollback()
        raise InvalidReviewStateError("Asset already has a pending review")
    except Exception:
        db.rollback()
        raise

    db.refresh(review)
    logger.info(f"Asset {asset.id} submitted for review {review.id}, reviewer {reviewer.id}")
    return review


def _check_can_decide(review: Review, actor: User) -> None:
    if not has_permission(actor.role, Permission.ASSET_REVIEW):
        raise ForbiddenError("Reviewing assets requires the asset.review permission")
    if review.reviewer_id != actor.id and not has_permission(actor.role, Permission.REVIEW_MANAGE):
        raise ForbiddenError("Only the assigned reviewer can decide this review")


def _decide(db: Session, review: Review, status: str, comments: Optional[str]) -> None:
    """Conditionally move a PENDING review to ``status``. Does not commit."""
    updated = (
        db.query(Review)
        .filter(Review.id == review.id, Review.status == ReviewStatus.PENDING)
        .update(
            {
                Review.status: status,
                Review.comments: comments,
                Review.decided_at: datetime.utcnow(),
                Review.updated_at: datetime.utcnow(),
            },
            synchronize_session=False,
        )
    )
    if updated == 0:
        raise InvalidReviewStateError(f"Review {review.id} is no longer pending")


def _transition(db: Session, review: Review, actor: User, status: str, comments, apply) -> Review:
    _check_can_decide(review, actor)
    if review.status != ReviewStatus.PENDING:
        raise InvalidReviewStateError(f"Review {review.id} is already {review.status}")
    if review.asset.is_archived:
        raise InvalidReviewStateError(f"Asset {review.asset_id} is archived")

    try:
        _decide(db, review, status, comments)
        apply(review.asset)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(review)
    logger.info(f"Review {review.id} moved to {status} by user {actor.id}")
    return review


def approve(
    db: Session,
    review: Review,
    actor: User,
    comments: Optional[str] = None,
    sink: ActivitySink = activity_sink,
) -> Review:
    def apply(asset: Asset) -> None:
        asset.ready_for_publishing = True
        sink.log(
            db,
            AssetApproved(
                tenant_id=review.tenant_id,
                user_id=actor.id,
                asset_id=asset.id,
                asset_title=asset.title,
                review_id=review.id,
                comments=comments,
            ),
        )

    return _transition(db, review, actor, ReviewStatus.APPROVED, comments, apply)


def reject(
    db: Session,
    review: Review,
    actor: User,
    comments: str,
    reasons: List[str],
    sink: ActivitySink = activity_sink,
) -> Review:
    """Reject a pending review. Comments and at least one reason are required."""
    reasons = [r.strip() for r in reasons if r and r.strip()]
    if not comments or not comments.strip() or not reasons:
        raise ValidationError("Comments and rejection reasons are required")

    stored_comments = f"{comments.strip()}\n\nReasons: {', '.join(reasons)}"

    def apply(asset: Asset) -> None:
        asset.ready_for_publishing = False
        sink.log(
            db,
            AssetRejected(
                tenant_id=review.tenant_id,
                user_id=actor.id,
                asset_id=asset.id,
                asset_title=asset.title,
                review_id=review.id,
                comments=comments.strip(),
                reasons=reasons,
            ),
        )

    return _transition(db, review, actor, ReviewStatus.REJECTED, stored_comments, apply)


def request_changes(
    db: Session,
    review: Review,
    actor: User,
    comments: str,
    required_changes: List[str],
    sink: ActivitySink = activity_sink,
) -> Review:
    """Return the asset to its uploader for a fresh upload."""
    required_changes = [c.strip() for c in required_changes if c and c.strip()]
    if not comments or not comments.strip() or not required_changes:
        raise ValidationError("Comments and at least one required change are required")

    stored_comments = (
        f"{comments.strip()}\n\nRequired changes:\n"
        + "\n".join(f"- {change}" for change in required_changes)
    )

    def apply(asset: Asset) -> None:
        set_processing_status(asset, ProcessingStatus.NEEDS_REVISION)
        asset.ready_for_publishing = False
        sink.log(
            db,
            ChangesRequested(
                tenant_id=review.tenant_id,
                user_id=actor.id,
                asset_id=asset.id,
                asset_title=asset.title,
                review_id=review.id,
                comments=comments.strip(),
                required_changes=required_changes,
            ),
        )

    return _transition(db, review, actor, ReviewStatus.NEEDS_REVISION, stored_comments, apply)
