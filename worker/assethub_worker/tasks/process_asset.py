"""Asset processing task."""

import logging

from celery.exceptions import MaxRetriesExceededError, SoftTimeLimitExceeded
from redis.exceptions import LockError, RedisError
from sqlalchemy.exc import OperationalError

from assethub.celery_app import PROCESS_ASSET_TASK
from assethub.schemas.job import JobStatus, ProcessingJob
from assethub.storage.base import StorageConnectionError
from assethub_worker.celery_app import celery_app
from assethub_worker.config import settings
from assethub_worker.resources import get_resources
from assethub_worker.services.errors import MediaToolError

logger = logging.getLogger(__name__)

# Failures worth another attempt; the asset stays PROCESSING meanwhile
TRANSIENT_ERRORS = (StorageConnectionError, OperationalError, MediaToolError, RedisError)


def _finish(job: ProcessingJob, status: str, error: str = None) -> dict:
    store = get_resources().job_store
    try:
        store.set_job_status(job.job_id, job.asset_id, status, error=error)
        store.release_slot(job.asset_id, job.job_id)
    except RedisError as e:
        logger.error(f"Could not record final status of job {job.job_id}: {e}")
    return {"status": status, "job_id": job.job_id, "asset_id": job.asset_id, "error": error}


@celery_app.task(bind=True, name=PROCESS_ASSET_TASK, max_retries=settings.transient_retry_limit)
def process_asset(self, payload: dict) -> dict:
    """
    Derive the variants of one asset.

    Only one job works on an asset at a time. A delivery that finds the
    asset lock held is retried later, and skipped once retries run out.

    Args:
        payload: Serialized ProcessingJob

    Returns:
        Dict with the job status and the variants written
    """
    job = ProcessingJob.model_validate(payload)
    resources = get_resources()
    store = resources.job_store
    logger.info(f"Starting job {job.job_id} for asset {job.asset_id} (attempt {self.request.retries + 1})")

    lock = resources.redis.lock(store.lock_key(job.asset_id), timeout=settings.asset_lock_ttl_seconds)
    if not lock.acquire(blocking=False):
        logger.info(f"Asset {job.asset_id} is locked by another job, job {job.job_id} will retry")
        try:
            raise self.retry(countdown=settings.lock_retry_seconds)
        except MaxRetriesExceededError:
            return _finish(job, JobStatus.SKIPPED, error="Asset was locked by another job")

    try:
        store.set_job_status(job.job_id, job.asset_id, JobStatus.PROCESSING)
        outcome = resources.processor.process(job)

    except SoftTimeLimitExceeded:
        logger.error(f"Job {job.job_id} for asset {job.asset_id} exceeded its time limit")
        return _finish(job, JobStatus.FAILED, error="Processing timed out")

    except TRANSIENT_ERRORS as e:
        if self.request.retries < self.max_retries:
            countdown = settings.transient_retry_backoff_seconds * (2 ** self.request.retries)
            logger.warning(f"Job {job.job_id} hit a transient error, retrying in {countdown}s: {e}")
            raise self.retry(exc=e, countdown=countdown)
        logger.error(f"Job {job.job_id} gave up after {self.request.retries + 1} attempts: {e}", exc_info=True)
        return _finish(job, JobStatus.FAILED, error=str(e))

    finally:
        try:
            lock.release()
        except LockError:
            logger.warning(f"Lock for asset {job.asset_id} expired before job {job.job_id} finished")

    result = _finish(job, outcome.status, error=outcome.error)
    result["variants"] = outcome.variants
    logger.info(f"Job {job.job_id} finished: {outcome.status}")
    return result
