"""Asset schemas."""

import json
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_serializer, field_validator

from assethub.schemas.common import CamelModel


class AssetType:
    """Asset type values."""

    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    DOCUMENT = "DOCUMENT"
    AUDIO = "AUDIO"
    MODEL_3D = "MODEL_3D"
    DESIGN = "DESIGN"
    OTHER = "OTHER"


class ProcessingStatus:
    """Asset processing status values."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    NEEDS_REVISION = "NEEDS_REVISION"


class VariantType:
    """Variant type values."""

    THUMBNAIL = "THUMBNAIL"
    PREVIEW = "PREVIEW"
    WEB_OPTIMIZED = "WEB_OPTIMIZED"
    MOBILE = "MOBILE"


# Upload
class UploadPrepareRequest(CamelModel):
    """Request for a single upload slot."""

    file_name: str = Field(..., min_length=1, max_length=500, description="Client-side filename")
    file_size: int = Field(..., description="Declared size in bytes")
    file_type: Optional[str] = Field(None, description="Declared MIME type")


class UploadPrepareResponse(CamelModel):
    upload_id: str
    upload_url: str
    file_key: str
    expires_at: datetime


class BatchUploadRequest(CamelModel):
    files: List[UploadPrepareRequest] = Field(..., description="Files to upload (1-100)")


class BatchUploadItem(CamelModel):
    file_name: str
    upload_url: str
    file_key: str
    expires_at: datetime


class BatchUploadResponse(CamelModel):
    batch_id: str
    uploads: List[BatchUploadItem]
    total_files: int


class AssetMetadataInput(CamelModel):
    """User-supplied metadata sent with upload completion."""

    title: str = Field(..., min_length=1, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    usage_rights: Optional[str] = None
    copyright: Optional[str] = None


class UploadCompleteRequest(CamelModel):
    upload_id: str = Field(..., min_length=1, max_length=64)
    file_key: str = Field(..., min_length=1, max_length=1000)
    metadata: AssetMetadataInput
    file_size: int
    mime_type: str
    original_filename: str = Field(..., min_length=1, max_length=500)
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[float] = None
    revision_of: Optional[int] = Field(None, description="Asset returned for revision that this upload replaces")


# Responses
class VariantResponse(CamelModel):
    id: int
    variant_type: str
    file_key: str
    mime_type: str
    file_size: int
    width: Optional[int] = None
    height: Optional[int] = None
    created_at: datetime

    @field_serializer("file_size")
    def _size_as_string(self, value: int) -> str:
        return str(value)


class AssetResponse(CamelModel):
    """Public asset fields."""

    id: int
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    type: str
    file_key: str
    filename: str
    original_filename: str
    mime_type: str
    file_size: int = Field(..., description="Size in bytes, serialized as a decimal string")
    format: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[float] = None
    processing_status: str
    processing_error: Optional[str] = None
    thumbnail_key: Optional[str] = None
    preview_key: Optional[str] = None
    ready_for_publishing: bool
    is_archived: bool
    uploaded_by_id: int
    upload_batch_id: Optional[str] = None
    download_count: int
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="metadata_json")
    created_at: datetime
    updated_at: datetime

    @field_validator("metadata", mode="before")
    @classmethod
    def _parse_metadata(cls, value: Any) -> Any:
        if isinstance(value, str):
            return json.loads(value)
        return value

    @field_serializer("file_size")
    def _size_as_string(self, value: int) -> str:
        return str(value)


class AssetDetailResponse(AssetResponse):
    variants: List[VariantResponse] = Field(default_factory=list)


class AssetListResponse(CamelModel):
    items: List[AssetResponse]
    total: int
    page: int
    page_size: int


class ViewResponse(CamelModel):
    asset_id: int
    total_views: int
    views_today: int


class DownloadRequest(CamelModel):
    purpose: Optional[str] = None
    project_name: Optional[str] = None
    usage_notes: Optional[str] = None


class DownloadResponse(CamelModel):
    download_url: str
    expires_at: datetime
    filename: str
    download_count: int


class DailyAnalytics(CamelModel):
    day: date
    views: int
    downloads: int


class AssetAnalyticsResponse(CamelModel):
    asset_id: int
    days: int
    total_views: int
    total_downloads: int
    daily: List[DailyAnalytics]


class ReprocessResponse(CamelModel):
    asset_id: int
    job_id: str
    status: str
