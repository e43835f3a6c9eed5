"""Celery worker application."""

import logging

from celery import Celery
from celery.signals import after_setup_logger, worker_process_init, worker_process_shutdown

from assethub.celery_app import REQUEUE_STALE_TASK
from assethub_worker.config import settings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "assethub_worker",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["assethub_worker.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_default_queue=settings.processing_queue,
    # Acknowledge only after the task finished; a crashed worker's job is redelivered
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    worker_concurrency=settings.worker_concurrency,
    task_soft_time_limit=settings.job_soft_time_limit_seconds,
    task_time_limit=settings.job_hard_time_limit_seconds,
    beat_schedule={
        "requeue-stale-assets": {
            "task": REQUEUE_STALE_TASK,
            "schedule": float(settings.supervisor_interval_seconds),
        },
    },
)


@after_setup_logger.connect
def configure_logging(logger=None, **kwargs):
    if logger is not None:
        logger.setLevel(settings.log_level.upper())


@worker_process_init.connect
def init_worker_process(**kwargs):
    from assethub_worker.resources import init_resources

    init_resources()


@worker_process_shutdown.connect
def shutdown_worker_process(**kwargs):
    from assethub_worker.resources import close_resources

    close_resources()
