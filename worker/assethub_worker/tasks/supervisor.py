"""Periodic requeue of assets whose processing stalled."""

import logging

from assethub.celery_app import REQUEUE_STALE_TASK
from assethub.database import SessionLocal
from assethub.services.asset_service import find_stale_assets
from assethub_worker.celery_app import celery_app
from assethub_worker.config import settings
from assethub_worker.resources import get_resources

logger = logging.getLogger(__name__)


@celery_app.task(name=REQUEUE_STALE_TASK)
def requeue_stale_assets(limit: int = 100) -> dict:
    """Enqueue processing again for assets stuck in PENDING or PROCESSING.

    Assets whose job slot is still held keep their outstanding job.
    """
    queue = get_resources().processing_queue(celery_app)
    db = SessionLocal()
    requeued = []
    try:
        stale = find_stale_assets(db, settings.processing_stale_after_seconds, limit)
        for asset in stale:
            try:
                job_id = queue.enqueue(asset)
            except Exception as e:
                logger.error(f"Could not requeue asset {asset.id}: {e}")
                continue
            requeued.append({"asset_id": asset.id, "job_id": job_id})
    finally:
        db.close()

    if requeued:
        logger.info(f"Requeued {len(requeued)} stale assets")
    return {"checked": len(stale), "requeued": requeued}
