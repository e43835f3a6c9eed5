"""Storage endpoints: connection test and signed local-driver transfers."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from assethub.api.deps import get_db, get_tenant_id, require_permission
from assethub.errors import ForbiddenError, NotFoundError
from assethub.models.user import User
from assethub.permissions import Permission
from assethub.schemas.service_config import StorageTestResponse
from assethub.services.file_validation import get_content_type
from assethub.storage.base import StorageConfigurationError, StorageError
from assethub.storage.factory import get_storage_driver
from assethub.storage.gateway import run_async
from assethub.storage.local_driver import LocalStorageDriver, verify_local_signature

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/test", response_model=StorageTestResponse)
def test_storage_connection(
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.CONFIG_MANAGE)),
    db: Session = Depends(get_db),
):
    """Test storage connection for tenant.

    Verifies that:
    - Storage is configured
    - Credentials are valid
    - Storage is accessible
    """
    try:
        driver = get_storage_driver(db, tenant_id)
    except StorageConfigurationError as e:
        return StorageTestResponse(status="error", message=str(e))

    base_path = str(getattr(driver, "base_path", "")) or None
    try:
        connected = run_async(driver.test_connection())
    except StorageError as e:
        logger.warning(f"Storage test failed for tenant {tenant_id}: {e}")
        connected = False

    return StorageTestResponse(
        status="ok" if connected else "error",
        provider=driver.provider,
        message="Connection successful" if connected else "Connection failed",
        base_path=base_path,
    )


def local_storage_driver(tenant: int = Query(...), db: Session = Depends(get_db)) -> LocalStorageDriver:
    """Resolve the tenant named in a signed URL to its local driver."""
    driver = get_storage_driver(db, tenant)
    if not isinstance(driver, LocalStorageDriver):
        raise NotFoundError("Local storage is not enabled for this tenant")
    return driver


def _check_signature(
    driver: LocalStorageDriver,
    method: str,
    key: str,
    tenant: int,
    expires: int,
    signature: str,
    filename: Optional[str] = None,
):
    if not verify_local_signature(
        driver.signing_key, method, key, expires, signature, tenant_id=tenant, filename=filename or ""
    ):
        raise ForbiddenError("Invalid or expired signature")


@router.put("/local/{key:path}", status_code=status.HTTP_204_NO_CONTENT)
async def upload_local_object(
    key: str,
    request: Request,
    tenant: int = Query(...),
    expires: int = Query(...),
    signature: str = Query(...),
    driver: LocalStorageDriver = Depends(local_storage_driver),
):
    """Receive bytes for a presigned local-storage upload URL."""
    _check_signature(driver, "PUT", key, tenant, expires, signature)

    content = await request.body()
    await driver.upload_file(key, content, request.headers.get("content-type"))
    logger.debug(f"Stored {len(content)} bytes at {key} for tenant {tenant}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/local/{key:path}")
async def download_local_object(
    key: str,
    tenant: int = Query(...),
    expires: int = Query(...),
    signature: str = Query(...),
    filename: Optional[str] = Query(None),
    driver: LocalStorageDriver = Depends(local_storage_driver),
):
    """Serve an object for a presigned local-storage download URL."""
    _check_signature(driver, "GET", key, tenant, expires, signature, filename)

    try:
        content = await driver.download_file(key)
    except FileNotFoundError:
        raise NotFoundError("Object not found")

    headers = {}
    if filename:
        headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return Response(content=content, media_type=get_content_type(key), headers=headers)
