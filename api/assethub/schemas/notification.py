"""Activity and notification schemas."""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from assethub.schemas.common import CamelModel


class NotificationType:
    """Notification type values."""

    REVIEW_ASSIGNED = "REVIEW_ASSIGNED"
    REVIEW_COMPLETED = "REVIEW_COMPLETED"
    REVIEW_CHANGES_REQUESTED = "REVIEW_CHANGES_REQUESTED"
    PROCESSING_FAILED = "PROCESSING_FAILED"
    SYSTEM_UPDATE = "SYSTEM_UPDATE"


class NotificationResponse(CamelModel):
    id: int
    type: str
    title: str
    message: str
    asset_id: Optional[int] = None
    activity_id: Optional[int] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class NotificationListResponse(CamelModel):
    items: List[NotificationResponse]
    unread_count: int


class MarkAllReadResponse(CamelModel):
    updated: int


class ActivityResponse(CamelModel):
    id: int
    type: str
    description: str
    user_id: int
    asset_id: Optional[int] = None
    collection_id: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="metadata_json")
    created_at: datetime

    @field_validator("metadata", mode="before")
    @classmethod
    def _parse_metadata(cls, value: Any) -> Any:
        if isinstance(value, str):
            return json.loads(value)
        return value
