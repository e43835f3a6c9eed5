"""Upload endpoints: slot preparation and completion."""

import logging
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from assethub.api.deps import (
    get_db,
    get_processing_queue,
    get_storage_gateway,
    get_tenant_id,
    rate_limit,
    require_permission,
)
from assethub.errors import ForbiddenError, ValidationError
from assethub.models.user import User
from assethub.permissions import Permission
from assethub.schemas.asset import (
    AssetResponse,
    BatchUploadItem,
    BatchUploadRequest,
    BatchUploadResponse,
    UploadCompleteRequest,
    UploadPrepareRequest,
    UploadPrepareResponse,
)
from assethub.services import asset_service
from assethub.services.file_validation import get_content_type, validate_file
from assethub.services.processing_queue import ProcessingQueue
from assethub.storage.gateway import StorageGateway

router = APIRouter()
logger = logging.getLogger(__name__)

MAX_BATCH_FILES = 100


def _declared_type(item: UploadPrepareRequest) -> str:
    return item.file_type or get_content_type(item.file_name)


@router.post(
    "/prepare",
    response_model=UploadPrepareResponse,
    dependencies=[Depends(rate_limit("upload"))],
)
def prepare_upload(
    request: UploadPrepareRequest,
    user: User = Depends(require_permission(Permission.ASSET_CREATE)),
    gateway: StorageGateway = Depends(get_storage_gateway),
):
    """Validate a declared upload and issue a presigned PUT URL.

    No asset is created until the client calls ``/complete``.
    """
    file_type = _declared_type(request)
    result = validate_file(file_type, request.file_size, request.file_name)
    if not result.valid:
        raise ValidationError(result.error)

    prepared = gateway.prepare_upload(request.file_name, file_type, user.id)
    return UploadPrepareResponse(
        upload_id=uuid.uuid4().hex,
        upload_url=prepared.upload_url,
        file_key=prepared.file_key,
        expires_at=prepared.expires_at,
    )


@router.post(
    "/batch",
    response_model=BatchUploadResponse,
    dependencies=[Depends(rate_limit("upload"))],
)
def prepare_batch_upload(
    request: BatchUploadRequest,
    user: User = Depends(require_permission(Permission.ASSET_CREATE)),
    gateway: StorageGateway = Depends(get_storage_gateway),
):
    """Issue upload URLs for up to 100 files under one batch id.

    Every file is validated before any URL is generated; one invalid file
    rejects the whole batch.
    """
    if not request.files:
        raise ValidationError("No files provided")
    if len(request.files) > MAX_BATCH_FILES:
        raise ValidationError(f"Maximum {MAX_BATCH_FILES} files allowed per batch")

    errors = []
    for index, item in enumerate(request.files):
        result = validate_file(_declared_type(item), item.file_size, item.file_name)
        if not result.valid:
            errors.append({"index": index, "fileName": item.file_name, "error": result.error})
    if errors:
        raise ValidationError("One or more files failed validation", details=errors)

    uploads = []
    for item in request.files:
        prepared = gateway.prepare_upload(item.file_name, _declared_type(item), user.id)
        uploads.append(
            BatchUploadItem(
                file_name=item.file_name,
                upload_url=prepared.upload_url,
                file_key=prepared.file_key,
                expires_at=prepared.expires_at,
            )
        )

    return BatchUploadResponse(batch_id=uuid.uuid4().hex, uploads=uploads, total_files=len(uploads))


@router.post("/complete", response_model=AssetResponse, status_code=status.HTTP_201_CREATED)
def complete_upload(
    request: UploadCompleteRequest,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.ASSET_CREATE)),
    db: Session = Depends(get_db),
    gateway: StorageGateway = Depends(get_storage_gateway),
    queue: ProcessingQueue = Depends(get_processing_queue),
):
    """
    Register an uploaded object as an asset and start its processing.

    - **fileKey** must be in the caller's upload namespace
    - the object must already exist in storage
    - the asset is queued for variant generation; types without a
      renderer get a placeholder thumbnail
    """
    if not gateway.owns_key(request.file_key, user.id):
        raise ForbiddenError("File key does not belong to this user")

    result = validate_file(request.mime_type, request.file_size, request.original_filename)
    if not result.valid:
        raise ValidationError(result.error)

    if not gateway.complete_upload(request.file_key):
        raise ValidationError("File not found in storage. Upload may have failed.")

    asset = asset_service.create_asset_from_upload(db, tenant_id, user, request)

    try:
        queue.enqueue(asset)
    except Exception as e:
        # The stale-asset supervisor picks the asset up later
        logger.error(f"Failed to enqueue processing for asset {asset.id}: {e}", exc_info=True)

    return AssetResponse.model_validate(asset)
