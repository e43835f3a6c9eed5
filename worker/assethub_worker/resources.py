"""Per-process clients for the worker."""

import logging
from typing import Optional

import redis

from assethub.database import SessionLocal, engine
from assethub.services.job_store import ProcessingJobStore
from assethub.services.processing_queue import ProcessingQueue
from assethub.storage.factory import get_storage_driver
from assethub.storage.gateway import StorageGateway
from assethub_worker.config import settings
from assethub_worker.services.asset_processor import AssetProcessor

logger = logging.getLogger(__name__)


class WorkerResources:
    """Clients built when a worker process starts and closed when it stops."""

    def __init__(self):
        self.redis = redis.from_url(settings.redis_url, decode_responses=True)
        self.job_store = ProcessingJobStore(self.redis)
        self.processor = AssetProcessor(
            session_factory=SessionLocal,
            gateway_factory=self.storage_gateway,
        )

    @staticmethod
    def storage_gateway(db, tenant_id: int) -> StorageGateway:
        return StorageGateway(get_storage_driver(db, tenant_id), settings.presigned_url_ttl_seconds)

    def processing_queue(self, celery_client) -> ProcessingQueue:
        return ProcessingQueue(
            celery_client,
            self.job_store,
            queue_name=settings.processing_queue,
            slot_ttl_seconds=settings.processing_slot_ttl_seconds,
        )

    def close(self) -> None:
        self.redis.close()
        engine.dispose()


_resources: Optional[WorkerResources] = None


def init_resources() -> WorkerResources:
    global _resources
    if _resources is None:
        _resources = WorkerResources()
        logger.info("Worker resources initialized")
    return _resources


def get_resources() -> WorkerResources:
    return _resources or init_resources()


def close_resources() -> None:
    global _resources
    if _resources is not None:
        _resources.close()
        _resources = None
        logger.info("Worker resources closed")
