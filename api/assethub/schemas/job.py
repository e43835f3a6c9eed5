"""Processing job schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class JobStatus:
    """Processing job status values."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ProcessingJob(BaseModel):
    """Message placed on the processing queue for one asset."""

    job_id: str = Field(..., description="Queue job id, also the Celery task id")
    asset_id: int
    tenant_id: int
    asset_type: str
    file_key: str
    mime_type: str
    enqueued_at: datetime = Field(default_factory=datetime.utcnow)
    attempt: int = 0


class JobStatusRecord(BaseModel):
    job_id: str
    asset_id: int
    status: str
    created_at: str
    updated_at: str
    error: Optional[str] = None
