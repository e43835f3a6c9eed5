"""Typed domain events recorded in the activity log.

Each event type carries its own payload. The ``type`` field is the
discriminator; everything except the attribution fields is persisted as
the activity's ``metadata_json``.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class ActivityType:
    """Activity type values."""

    ASSET_UPLOADED = "ASSET_UPLOADED"
    ASSET_VIEWED = "ASSET_VIEWED"
    ASSET_DOWNLOADED = "ASSET_DOWNLOADED"
    ASSET_SUBMITTED_FOR_REVIEW = "ASSET_SUBMITTED_FOR_REVIEW"
    ASSET_APPROVED = "ASSET_APPROVED"
    ASSET_REJECTED = "ASSET_REJECTED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    ASSET_ARCHIVED = "ASSET_ARCHIVED"
    ASSET_PROCESSED = "ASSET_PROCESSED"
    ASSET_PROCESSING_FAILED = "ASSET_PROCESSING_FAILED"
    CONFIG_UPDATED = "CONFIG_UPDATED"


ATTRIBUTION_FIELDS = {"type", "tenant_id", "user_id", "asset_id"}


class _Event(BaseModel):
    tenant_id: int
    user_id: int
    asset_id: Optional[int] = None

    def describe(self) -> str:
        return self.type.replace("_", " ").capitalize()

    def payload(self) -> dict:
        return self.model_dump(mode="json", exclude=ATTRIBUTION_FIELDS)


class AssetUploaded(_Event):
    type: Literal["ASSET_UPLOADED"] = ActivityType.ASSET_UPLOADED
    asset_title: str
    original_filename: str
    mime_type: str
    file_size: str
    batch_id: Optional[str] = None

    def describe(self) -> str:
        return f'Uploaded "{self.asset_title}"'


class AssetViewed(_Event):
    type: Literal["ASSET_VIEWED"] = ActivityType.ASSET_VIEWED
    asset_title: str

    def describe(self) -> str:
        return f'Viewed "{self.asset_title}"'


class AssetDownloaded(_Event):
    type: Literal["ASSET_DOWNLOADED"] = ActivityType.ASSET_DOWNLOADED
    asset_title: str
    download_id: int
    purpose: Optional[str] = None

    def describe(self) -> str:
        return f'Downloaded "{self.asset_title}"'


class AssetSubmittedForReview(_Event):
    type: Literal["ASSET_SUBMITTED_FOR_REVIEW"] = ActivityType.ASSET_SUBMITTED_FOR_REVIEW
    asset_title: str
    review_id: int
    reviewer_id: int

    def describe(self) -> str:
        return f'Submitted "{self.asset_title}" for review'


class AssetApproved(_Event):
    type: Literal["ASSET_APPROVED"] = ActivityType.ASSET_APPROVED
    asset_title: str
    review_id: int
    comments: Optional[str] = None

    def describe(self) -> str:
        return f'Approved "{self.asset_title}"'


class AssetRejected(_Event):
    type: Literal["ASSET_REJECTED"] = ActivityType.ASSET_REJECTED
    asset_title: str
    review_id: int
    comments: str
    reasons: List[str]

    def describe(self) -> str:
        return f'Rejected "{self.asset_title}"'


class ChangesRequested(_Event):
    type: Literal["CHANGES_REQUESTED"] = ActivityType.CHANGES_REQUESTED
    asset_title: str
    review_id: int
    comments: str
    required_changes: List[str]

    def describe(self) -> str:
        return f'Requested changes to "{self.asset_title}"'


class AssetArchived(_Event):
    type: Literal["ASSET_ARCHIVED"] = ActivityType.ASSET_ARCHIVED
    asset_title: str
    replaced_by_id: Optional[int] = None

    def describe(self) -> str:
        return f'Archived "{self.asset_title}"'


class AssetProcessed(_Event):
    type: Literal["ASSET_PROCESSED"] = ActivityType.ASSET_PROCESSED
    variants: List[str]


class AssetProcessingFailed(_Event):
    type: Literal["ASSET_PROCESSING_FAILED"] = ActivityType.ASSET_PROCESSING_FAILED
    asset_title: str
    error: str

    def describe(self) -> str:
        return f'Processing failed for "{self.asset_title}"'


class ConfigUpdated(_Event):
    type: Literal["CONFIG_UPDATED"] = ActivityType.CONFIG_UPDATED
    kind: str
    action: str
    changed_fields: List[str] = Field(default_factory=list)

    def describe(self) -> str:
        return f"{self.action.capitalize()}d {self.kind} configuration"


ActivityEvent = Annotated[
    Union[
        AssetUploaded,
        AssetViewed,
        AssetDownloaded,
        AssetSubmittedForReview,
        AssetApproved,
        AssetRejected,
        ChangesRequested,
        AssetArchived,
        AssetProcessed,
        AssetProcessingFailed,
        ConfigUpdated,
    ],
    Field(discriminator="type"),
]

activity_event_adapter = TypeAdapter(ActivityEvent)
