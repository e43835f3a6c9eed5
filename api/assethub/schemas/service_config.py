"""Service config schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConfigKind:
    """Configurable service kinds and the providers each accepts."""

    STORAGE = "storage"
    EMAIL = "email"

    PROVIDERS = {
        STORAGE: ("local", "s3"),
        EMAIL: ("smtp", "ses"),
    }


class ServiceConfigUpdate(BaseModel):
    """Create or replace a service configuration.

    Credentials are write-only: they are encrypted on save and never
    returned.
    """

    provider: str = Field(..., description="Provider for this kind (local, s3, smtp, ses)")
    base_path: str = Field("", description="Base path or key prefix (storage only)")
    options: Dict[str, Any] = Field(default_factory=dict, description="Non-secret provider settings")
    credentials: Optional[Dict[str, Any]] = Field(
        None, description="Secret values; omitted keeps the stored credentials"
    )


class ServiceConfigResponse(BaseModel):
    """Service config without sensitive data."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    kind: str
    provider: str
    base_path: str
    options: Dict[str, Any] = Field(default_factory=dict)
    has_credentials: bool
    credential_fields: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ConfigAuditEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    actor_id: int
    action: str
    kind: str
    changed_fields: List[str] = Field(default_factory=list)
    created_at: datetime


class StorageTestResponse(BaseModel):
    """Storage connection test result."""

    status: str = Field(..., description="ok or error")
    provider: Optional[str] = None
    message: str
    base_path: Optional[str] = None
