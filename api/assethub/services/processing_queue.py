"""Dispatch of asset processing jobs."""

import logging
import uuid

from assethub.celery_app import PROCESS_ASSET_TASK
from assethub.models.asset import Asset
from assethub.schemas.job import JobStatus, ProcessingJob
from assethub.services.job_store import ProcessingJobStore

logger = logging.getLogger(__name__)


class ProcessingQueue:
    """Places typed processing jobs on the durable queue.

    At most one job per asset is outstanding: the job store slot is claimed
    before the message is sent, and a second enqueue for the same asset
    returns the outstanding job id instead of creating a new job.
    """

    def __init__(
        self,
        celery_client,
        job_store: ProcessingJobStore,
        queue_name: str = "asset-processing",
        slot_ttl_seconds: int = 3600,
    ):
        self.celery_client = celery_client
        self.job_store = job_store
        self.queue_name = queue_name
        self.slot_ttl_seconds = slot_ttl_seconds

    def enqueue(self, asset: Asset, force: bool = False) -> str:
        """Enqueue processing for ``asset`` and return the job id.

        Args:
            asset: Asset to process
            force: Drop any outstanding slot first (manual retry of a stale job)
        """
        if force:
            self.job_store.release_slot(asset.id)

        job_id = uuid.uuid4().hex
        if not self.job_store.claim_slot(asset.id, job_id, self.slot_ttl_seconds):
            existing = self.job_store.get_slot(asset.id)
            if existing:
                logger.info(f"Asset {asset.id} already has outstanding job {existing}")
                return existing
            # Slot expired between the two calls
            if not self.job_store.claim_slot(asset.id, job_id, self.slot_ttl_seconds):
                return self.job_store.get_slot(asset.id) or job_id

        job = ProcessingJob(
            job_id=job_id,
            asset_id=asset.id,
            tenant_id=asset.tenant_id,
            asset_type=asset.type,
            file_key=asset.file_key,
            mime_type=asset.mime_type,
        )

        try:
            self.celery_client.send_task(
                PROCESS_ASSET_TASK,
                args=[job.model_dump(mode="json")],
                task_id=job_id,
                queue=self.queue_name,
            )
        except Exception:
            self.job_store.release_slot(asset.id, job_id)
            raise

        self.job_store.set_job_status(job_id, asset.id, JobStatus.QUEUED)
        logger.info(f"Enqueued {asset.type} processing job {job_id} for asset {asset.id}")
        return job_id
