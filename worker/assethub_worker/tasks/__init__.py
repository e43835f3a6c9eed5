"""Celery tasks."""

from assethub_worker.tasks.process_asset import process_asset  # noqa: F401
from assethub_worker.tasks.supervisor import requeue_stale_assets  # noqa: F401

__all__ = ["process_asset", "requeue_stale_assets"]
