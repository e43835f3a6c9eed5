"""Celery client for API to dispatch tasks."""

from celery import Celery

from assethub.config import settings

PROCESS_ASSET_TASK = "assethub_worker.tasks.process_asset"
REQUEUE_STALE_TASK = "assethub_worker.tasks.requeue_stale_assets"


def create_celery_client() -> Celery:
    """Celery app used only for sending tasks, never executing them."""
    client = Celery(
        "assethub_api",
        broker=settings.celery_broker_url,
        backend=settings.celery_result_backend,
    )
    client.conf.update(
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,
        task_track_started=True,
        task_default_queue=settings.processing_queue,
    )
    return client
