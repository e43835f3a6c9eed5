"""Asset endpoints."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from assethub.api.deps import (
    get_current_user,
    get_db,
    get_processing_queue,
    get_storage_gateway,
    get_tenant_id,
    rate_limit,
    require_permission,
)
from assethub.config import settings
from assethub.errors import ConflictError, ForbiddenError
from assethub.models.user import User
from assethub.permissions import Permission, has_permission
from assethub.schemas.asset import (
    AssetAnalyticsResponse,
    AssetDetailResponse,
    AssetListResponse,
    AssetResponse,
    DailyAnalytics,
    DownloadRequest,
    DownloadResponse,
    ProcessingStatus,
    ReprocessResponse,
    ViewResponse,
)
from assethub.schemas.notification import ActivityResponse
from assethub.schemas.review import ReviewResponse
from assethub.services import activity_service, analytics_service, asset_service, review_service
from assethub.services.processing_queue import ProcessingQueue
from assethub.services.rate_limiter import client_ip
from assethub.storage.gateway import StorageGateway

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=AssetListResponse, dependencies=[Depends(rate_limit("search"))])
def list_assets(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    type: Optional[str] = Query(None, description="Asset type filter"),
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=200),
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.ASSET_READ)),
    db: Session = Depends(get_db),
):
    """List assets in the tenant. Archived assets are never listed."""
    items, total = asset_service.list_assets(
        db,
        tenant_id,
        page=page,
        page_size=page_size,
        asset_type=type,
        status=status_filter,
        category=category,
        search=search,
    )
    return AssetListResponse(
        items=[AssetResponse.model_validate(a) for a in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{asset_id}", response_model=AssetDetailResponse)
def get_asset(
    asset_id: int,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.ASSET_READ)),
    db: Session = Depends(get_db),
):
    """Get asset details with its variants."""
    asset = asset_service.get_asset(db, asset_id, tenant_id)
    return AssetDetailResponse.model_validate(asset)


@router.delete("/{asset_id}", response_model=AssetResponse)
def archive_asset(
    asset_id: int,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Archive (soft-delete) an asset. Owners may archive their own assets."""
    asset = asset_service.get_asset(db, asset_id, tenant_id)
    if asset.uploaded_by_id != user.id and not has_permission(user.role, Permission.ASSET_ARCHIVE):
        raise ForbiddenError("Only the uploader or a content manager can archive this asset")

    asset = asset_service.archive_asset(db, asset, user)
    return AssetResponse.model_validate(asset)


@router.post("/{asset_id}/view", response_model=ViewResponse, dependencies=[Depends(rate_limit("api"))])
def track_view(
    asset_id: int,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.ASSET_READ)),
    db: Session = Depends(get_db),
):
    """Count a view of the asset."""
    asset = asset_service.get_asset(db, asset_id, tenant_id, include_archived=True)
    total_views, views_today = asset_service.record_view(db, asset, user)
    return ViewResponse(asset_id=asset.id, total_views=total_views, views_today=views_today)


def _download(
    asset_id: int,
    download_request: DownloadRequest,
    request: Request,
    tenant_id: int,
    user: User,
    db: Session,
    gateway: StorageGateway,
) -> DownloadResponse:
    asset = asset_service.get_asset(db, asset_id, tenant_id)

    # URL first: a storage failure must not leave a recorded download behind
    ttl = settings.presigned_url_ttl_seconds
    url = gateway.get_download_url(asset.file_key, asset.original_filename, ttl)

    peer = request.client.host if request.client else None
    asset_service.record_download(
        db, asset, user, download_request, ip_address=client_ip(request.headers, peer)
    )

    return DownloadResponse(
        download_url=url,
        expires_at=datetime.utcnow() + timedelta(seconds=ttl),
        filename=asset.original_filename,
        download_count=asset.download_count,
    )


@router.get("/{asset_id}/download", response_model=DownloadResponse, dependencies=[Depends(rate_limit("api"))])
def download_asset(
    asset_id: int,
    request: Request,
    purpose: Optional[str] = None,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.ASSET_DOWNLOAD)),
    db: Session = Depends(get_db),
    gateway: StorageGateway = Depends(get_storage_gateway),
):
    """Get a signed, time-limited download URL."""
    return _download(asset_id, DownloadRequest(purpose=purpose), request, tenant_id, user, db, gateway)


@router.post("/{asset_id}/download", response_model=DownloadResponse, dependencies=[Depends(rate_limit("api"))])
def download_asset_with_details(
    asset_id: int,
    download_request: DownloadRequest,
    request: Request,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.ASSET_DOWNLOAD)),
    db: Session = Depends(get_db),
    gateway: StorageGateway = Depends(get_storage_gateway),
):
    """Download with purpose and project details recorded."""
    return _download(asset_id, download_request, request, tenant_id, user, db, gateway)


@router.get("/{asset_id}/analytics", response_model=AssetAnalyticsResponse)
def get_asset_analytics(
    asset_id: int,
    days: int = Query(30, ge=1, le=365),
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Daily views and downloads for the trailing window."""
    asset = asset_service.get_asset(db, asset_id, tenant_id, include_archived=True)
    if asset.uploaded_by_id != user.id and not has_permission(user.role, Permission.ANALYTICS_READ):
        raise ForbiddenError("Missing permission: analytics.read")

    rows = analytics_service.get_asset_analytics(db, asset.id, days)
    total_views, total_downloads = analytics_service.get_totals(db, asset.id)
    return AssetAnalyticsResponse(
        asset_id=asset.id,
        days=days,
        total_views=total_views,
        total_downloads=total_downloads,
        daily=[DailyAnalytics(day=r.date, views=r.views, downloads=r.downloads) for r in rows],
    )


@router.get("/{asset_id}/activity", response_model=List[ActivityResponse])
def get_asset_activity(
    asset_id: int,
    limit: int = Query(50, ge=1, le=200),
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.ASSET_READ)),
    db: Session = Depends(get_db),
):
    """Activity log of an asset, newest first."""
    asset = asset_service.get_asset(db, asset_id, tenant_id, include_archived=True)
    return [ActivityResponse.model_validate(a) for a in activity_service.list_asset_activity(db, asset.id, limit)]


@router.post("/{asset_id}/submit-review", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def submit_for_review(
    asset_id: int,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Submit a processed asset for review and assign a reviewer."""
    review = review_service.submit_for_review(db, asset_id, tenant_id, user)
    return ReviewResponse.model_validate(review)


@router.post("/{asset_id}/reprocess", response_model=ReprocessResponse, status_code=status.HTTP_202_ACCEPTED)
def reprocess_asset(
    asset_id: int,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.ASSET_REPROCESS)),
    db: Session = Depends(get_db),
    queue: ProcessingQueue = Depends(get_processing_queue),
):
    """Manually retry processing of an asset stuck in PENDING or PROCESSING.

    Completed and failed assets are terminal; a failed upload needs a
    fresh upload instead.
    """
    asset = asset_service.get_asset(db, asset_id, tenant_id)
    if asset.processing_status not in (ProcessingStatus.PENDING, ProcessingStatus.PROCESSING):
        raise ConflictError(f"Asset is {asset.processing_status} and cannot be reprocessed")

    job_id = queue.enqueue(asset, force=True)
    logger.info(f"User {user.id} requeued asset {asset.id} as job {job_id}")
    return ReprocessResponse(asset_id=asset.id, job_id=job_id, status="queued")
