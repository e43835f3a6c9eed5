"""Persisted service configuration endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from assethub.api.deps import get_db, get_tenant_id, require_permission
from assethub.models.user import User
from assethub.permissions import Permission
from assethub.schemas.service_config import (
    ConfigAuditEntry,
    ServiceConfigResponse,
    ServiceConfigUpdate,
)
from assethub.services import config_service

router = APIRouter()


@router.get("/audit", response_model=List[ConfigAuditEntry])
def get_config_audit(
    kind: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.CONFIG_MANAGE)),
    db: Session = Depends(get_db),
):
    """Configuration change history: actor, action and timestamp."""
    return config_service.list_audit(db, tenant_id, kind, limit)


@router.get("/{kind}", response_model=ServiceConfigResponse)
def get_config(
    kind: str,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.CONFIG_MANAGE)),
    db: Session = Depends(get_db),
):
    """Get configuration for ``kind`` (storage or email). Credentials are never returned."""
    return config_service.to_response(config_service.get_config(db, tenant_id, kind))


@router.put("/{kind}", response_model=ServiceConfigResponse)
def put_config(
    kind: str,
    data: ServiceConfigUpdate,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.CONFIG_MANAGE)),
    db: Session = Depends(get_db),
):
    """
    Create or replace configuration.

    - **provider**: local or s3 for storage; smtp or ses for email
    - **credentials**: write-only, encrypted at rest
    """
    config = config_service.upsert_config(db, tenant_id, kind, data, user)
    return config_service.to_response(config)


@router.delete("/{kind}", status_code=status.HTTP_204_NO_CONTENT)
def delete_config(
    kind: str,
    tenant_id: int = Depends(get_tenant_id),
    user: User = Depends(require_permission(Permission.CONFIG_MANAGE)),
    db: Session = Depends(get_db),
):
    config_service.delete_config(db, tenant_id, kind, user)
