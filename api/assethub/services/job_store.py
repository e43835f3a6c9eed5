"""Redis-backed processing job store."""

import json
import logging
from datetime import datetime, timedelta
from typing import Optional

from assethub.schemas.job import JobStatusRecord

logger = logging.getLogger(__name__)

KEY_PREFIX = "asset-processing"
JOB_TTL = timedelta(hours=24)


class ProcessingJobStore:
    """Job status records and the one-outstanding-job-per-asset slot.

    The slot (``asset-processing:slot:{asset_id}``) holds the id of the job
    currently outstanding for an asset. It is claimed with ``SET NX`` at
    enqueue time and released when the job reaches a terminal state.
    """

    def __init__(self, client):
        self.client = client

    @staticmethod
    def _job_key(job_id: str) -> str:
        return f"{KEY_PREFIX}:job:{job_id}"

    @staticmethod
    def _slot_key(asset_id: int) -> str:
        return f"{KEY_PREFIX}:slot:{asset_id}"

    @staticmethod
    def lock_key(asset_id: int) -> str:
        return f"{KEY_PREFIX}:lock:{asset_id}"

    def claim_slot(self, asset_id: int, job_id: str, ttl_seconds: int) -> bool:
        return bool(self.client.set(self._slot_key(asset_id), job_id, nx=True, ex=ttl_seconds))

    def get_slot(self, asset_id: int) -> Optional[str]:
        value = self.client.get(self._slot_key(asset_id))
        if isinstance(value, bytes):
            value = value.decode()
        return value

    def release_slot(self, asset_id: int, job_id: Optional[str] = None) -> None:
        """Free the slot; with ``job_id`` only if that job still holds it."""
        if job_id is not None and self.get_slot(asset_id) != job_id:
            return
        self.client.delete(self._slot_key(asset_id))

    def set_job_status(
        self,
        job_id: str,
        asset_id: int,
        status: str,
        error: Optional[str] = None,
    ) -> JobStatusRecord:
        key = self._job_key(job_id)
        existing = self.get_job_status(job_id)
        now = datetime.utcnow().isoformat()

        record = JobStatusRecord(
            job_id=job_id,
            asset_id=asset_id,
            status=status,
            created_at=existing.created_at if existing else now,
            updated_at=now,
            error=error,
        )
        self.client.setex(key, JOB_TTL, record.model_dump_json())
        logger.debug(f"Job {job_id} for asset {asset_id} is {status}")
        return record

    def get_job_status(self, job_id: str) -> Optional[JobStatusRecord]:
        data = self.client.get(self._job_key(job_id))
        if data is None:
            return None
        try:
            return JobStatusRecord.model_validate(json.loads(data))
        except (json.JSONDecodeError, ValueError):
            logger.warning(f"Discarding unreadable job record {job_id}")
            return None
