"""Asset business logic service."""

import json
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from assethub.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from assethub.models.analytics import Download
from assethub.models.asset import Asset
from assethub.models.review import Review
from assethub.models.user import User
from assethub.schemas.asset import DownloadRequest, ProcessingStatus, UploadCompleteRequest
from assethub.schemas.events import AssetArchived, AssetDownloaded, AssetUploaded, AssetViewed
from assethub.schemas.review import ReviewStatus
from assethub.services import analytics_service
from assethub.services.activity_service import ActivitySink, activity_sink
from assethub.services.file_validation import get_asset_type_from_mime

logger = logging.getLogger(__name__)

# Allowed processing status transitions
ALLOWED_TRANSITIONS = {
    ProcessingStatus.PENDING: {ProcessingStatus.PROCESSING},
    ProcessingStatus.PROCESSING: {
        ProcessingStatus.PROCESSING,
        ProcessingStatus.COMPLETED,
        ProcessingStatus.FAILED,
    },
    ProcessingStatus.COMPLETED: {ProcessingStatus.NEEDS_REVISION},
    ProcessingStatus.FAILED: set(),
    ProcessingStatus.NEEDS_REVISION: set(),
}


class AssetNotFoundError(NotFoundError):
    """Asset not found."""


class InvalidAssetStateError(ConflictError):
    """Asset is in invalid state for operation."""


def get_asset(db: Session, asset_id: int, tenant_id: int, include_archived: bool = False) -> Asset:
    """
    Get asset by ID within a tenant.

    Archived assets are treated as absent unless ``include_archived``.

    Raises:
        AssetNotFoundError: If asset not found
    """
    query = db.query(Asset).filter(Asset.id == asset_id, Asset.tenant_id == tenant_id)
    if not include_archived:
        query = query.filter(Asset.is_archived.is_(False))

    asset = query.first()
    if not asset:
        raise AssetNotFoundError(f"Asset {asset_id} not found")
    return asset


def list_assets(
    db: Session,
    tenant_id: int,
    page: int = 1,
    page_size: int = 20,
    asset_type: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    uploaded_by_id: Optional[int] = None,
    search: Optional[str] = None,
) -> Tuple[List[Asset], int]:
    """List non-archived assets with optional filters, newest first."""
    query = db.query(Asset).filter(Asset.tenant_id == tenant_id, Asset.is_archived.is_(False))

    if asset_type:
        query = query.filter(Asset.type == asset_type)
    if status:
        query = query.filter(Asset.processing_status == status)
    if category:
        query = query.filter(Asset.category == category)
    if uploaded_by_id:
        query = query.filter(Asset.uploaded_by_id == uploaded_by_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Asset.title.ilike(pattern),
                Asset.description.ilike(pattern),
                Asset.original_filename.ilike(pattern),
            )
        )

    total = query.count()
    offset = (page - 1) * page_size
    items = query.order_by(Asset.created_at.desc(), Asset.id.desc()).offset(offset).limit(page_size).all()
    return items, total


def set_processing_status(
    asset: Asset, new_status: str, error: Optional[str] = None
) -> Asset:
    """Move an asset along the processing state machine. Does not commit.

    Raises:
        InvalidAssetStateError: If the transition is not allowed
    """
    current = asset.processing_status
    if new_status not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidAssetStateError(
            f"Asset {asset.id} cannot move from {current} to {new_status}"
        )

    asset.processing_status = new_status
    asset.processing_error = error if new_status == ProcessingStatus.FAILED else None
    return asset


def create_asset_from_upload(
    db: Session,
    tenant_id: int,
    user: User,
    request: UploadCompleteRequest,
    sink: ActivitySink = activity_sink,
) -> Asset:
    """
    Create the asset record for a completed upload.

    The asset row, its ASSET_UPLOADED activity and, for a revision, the
    archiving of the replaced asset are committed together.

    Raises:
        ConflictError: If the file key is already registered
        ValidationError / ForbiddenError: If ``revision_of`` is not replaceable
    """
    if db.query(Asset.id).filter(Asset.file_key == request.file_key).first():
        raise ConflictError("This upload has already been completed")

    replaced = None
    if request.revision_of is not None:
        replaced = _get_revisable_asset(db, tenant_id, user, request.revision_of)

    metadata = request.metadata
    filename = request.file_key.rsplit("/", 1)[-1]
    extension = request.original_filename.rsplit(".", 1)[-1].lower() if "." in request.original_filename else None

    asset = Asset(
        tenant_id=tenant_id,
        title=metadata.title,
        description=metadata.description,
        category=metadata.category,
        type=get_asset_type_from_mime(request.mime_type, request.original_filename),
        file_key=request.file_key,
        filename=filename,
        original_filename=request.original_filename,
        mime_type=request.mime_type,
        file_size=request.file_size,
        format=extension,
        width=request.width,
        height=request.height,
        duration=request.duration,
        processing_status=ProcessingStatus.PENDING,
        uploaded_by_id=user.id,
        upload_batch_id=request.upload_id,
        metadata_json=json.dumps(
            {
                "tags": metadata.tags,
                "keywords": metadata.keywords,
                "usage_rights": metadata.usage_rights,
                "copyright": metadata.copyright,
            }
        ),
    )

    try:
        db.add(asset)
        db.flush()

        sink.log(
            db,
            AssetUploaded(
                tenant_id=tenant_id,
                user_id=user.id,
                asset_id=asset.id,
                asset_title=asset.title,
                original_filename=asset.original_filename,
                mime_type=asset.mime_type,
                file_size=str(asset.file_size),
                batch_id=request.upload_id,
            ),
        )

        if replaced is not None:
            _archive(db, replaced, user, sink, replaced_by_id=asset.id)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(asset)
    logger.info(f"Created asset {asset.id} ({asset.type}) from {asset.file_key}")
    return asset


def _get_revisable_asset(db: Session, tenant_id: int, user: User, asset_id: int) -> Asset:
    try:
        previous = get_asset(db, asset_id, tenant_id)
    except AssetNotFoundError:
        raise ValidationError(f"Asset {asset_id} cannot be revised: not found")

    if previous.uploaded_by_id != user.id:
        raise ForbiddenError("Only the uploader can submit a revision")
    if previous.processing_status != ProcessingStatus.NEEDS_REVISION:
        raise ValidationError(f"Asset {asset_id} has not been returned for revision")
    return previous


def _archive(
    db: Session,
    asset: Asset,
    actor: User,
    sink: ActivitySink,
    replaced_by_id: Optional[int] = None,
) -> None:
    asset.is_archived = True
    asset.archived_at = datetime.utcnow()
    asset.ready_for_publishing = False
    # An archived asset can no longer be approved
    db.query(Review).filter(Review.asset_id == asset.id, Review.status == ReviewStatus.PENDING).update(
        {
            Review.status: ReviewStatus.CANCELLED,
            Review.comments: "Asset archived",
            Review.decided_at: datetime.utcnow(),
            Review.updated_at: datetime.utcnow(),
        },
        synchronize_session="fetch",
    )
    sink.log(
        db,
        AssetArchived(
            tenant_id=asset.tenant_id,
            user_id=actor.id,
            asset_id=asset.id,
            asset_title=asset.title,
            replaced_by_id=replaced_by_id,
        ),
    )


def archive_asset(db: Session, asset: Asset, actor: User, sink: ActivitySink = activity_sink) -> Asset:
    """Soft-delete an asset. Assets are never physically deleted."""
    try:
        _archive(db, asset, actor, sink)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(asset)
    logger.info(f"Archived asset {asset.id} by user {actor.id}")
    return asset


def record_view(
    db: Session, asset: Asset, user: User, sink: ActivitySink = activity_sink
) -> Tuple[int, int]:
    """Count a view and return ``(total_views, views_today)``.

    Raises:
        ValidationError: If the asset is archived
    """
    if asset.is_archived:
        raise ValidationError("Cannot track views for archived assets")

    try:
        analytics_service.record_asset_event(db, asset.id, "views")
        sink.log(
            db,
            AssetViewed(tenant_id=asset.tenant_id, user_id=user.id, asset_id=asset.id, asset_title=asset.title),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    total_views, _ = analytics_service.get_totals(db, asset.id)
    views_today, _ = analytics_service.get_daily_counts(db, asset.id)
    return total_views, views_today


def record_download(
    db: Session,
    asset: Asset,
    user: User,
    request: DownloadRequest,
    ip_address: Optional[str] = None,
    sink: ActivitySink = activity_sink,
) -> Download:
    """Record a download with its activity and daily counter in one transaction."""
    try:
        download = Download(
            asset_id=asset.id,
            user_id=user.id,
            purpose=request.purpose,
            project_name=request.project_name,
            usage_notes=request.usage_notes,
            ip_address=ip_address,
        )
        db.add(download)
        db.flush()

        db.query(Asset).filter(Asset.id == asset.id).update(
            {Asset.download_count: Asset.download_count + 1}, synchronize_session=False
        )
        sink.log(
            db,
            AssetDownloaded(
                tenant_id=asset.tenant_id,
                user_id=user.id,
                asset_id=asset.id,
                asset_title=asset.title,
                download_id=download.id,
                purpose=request.purpose,
            ),
        )
        analytics_service.record_asset_event(db, asset.id, "downloads")
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(asset)
    return download


def find_stale_assets(db: Session, older_than_seconds: int, limit: int = 100) -> List[Asset]:
    """Assets stuck in PENDING or PROCESSING longer than the threshold."""
    cutoff = datetime.utcnow() - timedelta(seconds=older_than_seconds)
    return (
        db.query(Asset)
        .filter(
            Asset.is_archived.is_(False),
            Asset.processing_status.in_([ProcessingStatus.PENDING, ProcessingStatus.PROCESSING]),
            Asset.updated_at < cutoff,
        )
        .order_by(Asset.updated_at.asc())
        .limit(limit)
        .all()
    )
