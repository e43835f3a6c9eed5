"""Celery task tests: per-asset locking, retries and the stale-asset supervisor."""

import importlib
import io
from datetime import datetime, timedelta

import pytest
from celery.exceptions import Retry
from PIL import Image

from assethub.models.asset import Asset
from assethub.storage.base import StorageConnectionError
from assethub_worker.config import settings
from assethub_worker.services.asset_processor import AssetProcessor
from assethub_worker.tasks import supervisor as supervisor_module
from assethub_worker.tasks.process_asset import process_asset
from assethub_worker.tasks.supervisor import requeue_stale_assets

# The tasks package re-exports the task under the module's name; fetch the module itself.
process_asset_module = importlib.import_module("assethub_worker.tasks.process_asset")


class TaskResources:
    """The parts of WorkerResources the tasks touch."""

    def __init__(self, redis, job_store, processor, queue=None):
        self.redis = redis
        self.job_store = job_store
        self.processor = processor
        self.queue = queue

    def processing_queue(self, celery_client):
        return self.queue


class FailingProcessor:
    def __init__(self, error):
        self.error = error
        self.calls = 0

    def process(self, job):
        self.calls += 1
        raise self.error


def _png():
    buffer = io.BytesIO()
    Image.new("RGB", (640, 360), (20, 120, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def processor(session_factory, storage_gateway):
    return AssetProcessor(session_factory=session_factory, gateway_factory=lambda db, tenant_id: storage_gateway)


@pytest.fixture
def use_resources(monkeypatch, fake_redis, job_store):
    def install(processor, queue=None):
        resources = TaskResources(fake_redis, job_store, processor, queue)
        monkeypatch.setattr(process_asset_module, "get_resources", lambda: resources)
        monkeypatch.setattr(supervisor_module, "get_resources", lambda: resources)
        return resources

    return install


@pytest.fixture
def retries(monkeypatch):
    """Record retry requests instead of re-running the task."""
    countdowns = []

    def fake_retry(exc=None, countdown=None, **options):
        countdowns.append(countdown)
        return Retry(exc=exc, when=countdown)

    monkeypatch.setattr(process_asset, "retry", fake_retry)
    return countdowns


@pytest.fixture
def queued(make_asset, creative, storage_dir, processing_queue, celery_client):
    """A PENDING image with its original in storage and a queued job."""
    asset = make_asset(creative, status="PENDING")
    target = storage_dir / asset.file_key
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(_png())
    processing_queue.enqueue(asset)
    return asset, celery_client.sent[-1]["args"][0]


def test_task_processes_asset_and_frees_slot(use_resources, processor, queued, job_store, fake_redis, test_db):
    asset, payload = queued
    use_resources(processor)

    result = process_asset.apply(args=[payload]).get()

    assert result["status"] == "completed"
    assert result["variants"] == ["MOBILE", "PREVIEW", "THUMBNAIL", "WEB_OPTIMIZED"]
    assert job_store.get_job_status(payload["job_id"]).status == "completed"
    assert job_store.get_slot(asset.id) is None
    assert fake_redis.get(job_store.lock_key(asset.id)) is None
    test_db.expire_all()
    assert test_db.get(Asset, asset.id).processing_status == "COMPLETED"


def test_locked_asset_is_retried_later(use_resources, processor, queued, job_store, fake_redis, retries, test_db):
    asset, payload = queued
    use_resources(processor)
    fake_redis.lock(job_store.lock_key(asset.id)).acquire()

    result = process_asset.apply(args=[payload])

    assert result.state == "RETRY"
    assert retries == [settings.lock_retry_seconds]
    # The other holder keeps its lock and the asset is untouched
    assert fake_redis.get(job_store.lock_key(asset.id)) == "locked"
    test_db.expire_all()
    assert test_db.get(Asset, asset.id).processing_status == "PENDING"


def test_locked_asset_is_skipped_once_retries_run_out(use_resources, processor, queued, job_store, fake_redis):
    asset, payload = queued
    use_resources(processor)
    fake_redis.lock(job_store.lock_key(asset.id)).acquire()

    result = process_asset.apply(args=[payload], retries=settings.transient_retry_limit).get()

    assert result["status"] == "skipped"
    assert job_store.get_job_status(payload["job_id"]).status == "skipped"
    assert job_store.get_slot(asset.id) is None


def test_transient_error_retries_with_backoff(use_resources, queued, job_store, fake_redis, retries):
    asset, payload = queued
    use_resources(FailingProcessor(StorageConnectionError("bucket unreachable")))

    result = process_asset.apply(args=[payload], retries=1)

    assert result.state == "RETRY"
    assert retries == [settings.transient_retry_backoff_seconds * 2]
    assert job_store.get_slot(asset.id) == payload["job_id"]
    assert fake_redis.get(job_store.lock_key(asset.id)) is None


def test_exhausted_retries_fail_job_and_release_slot(use_resources, queued, job_store, fake_redis, test_db):
    asset, payload = queued
    use_resources(FailingProcessor(StorageConnectionError("bucket unreachable")))

    result = process_asset.apply(args=[payload], retries=settings.transient_retry_limit).get()

    assert result["status"] == "failed"
    assert result["error"] == "bucket unreachable"
    record = job_store.get_job_status(payload["job_id"])
    assert (record.status, record.error) == ("failed", "bucket unreachable")
    assert job_store.get_slot(asset.id) is None
    assert fake_redis.get(job_store.lock_key(asset.id)) is None


@pytest.fixture
def supervised(monkeypatch, use_resources, processing_queue, session_factory):
    monkeypatch.setattr(supervisor_module, "SessionLocal", session_factory)
    use_resources(processor=None, queue=processing_queue)


def test_supervisor_requeues_stale_assets(supervised, make_asset, creative, celery_client):
    long_ago = datetime.utcnow() - timedelta(seconds=settings.processing_stale_after_seconds + 60)
    stuck_pending = make_asset(creative, status="PENDING", updated_at=long_ago)
    stuck_processing = make_asset(creative, status="PROCESSING", updated_at=long_ago)
    make_asset(creative, status="PENDING")
    make_asset(creative, status="COMPLETED", updated_at=long_ago)
    make_asset(creative, status="PROCESSING", updated_at=long_ago, is_archived=True)

    result = requeue_stale_assets.apply().get()

    assert result["checked"] == 2
    requeued = {item["asset_id"] for item in result["requeued"]}
    assert requeued == {stuck_pending.id, stuck_processing.id}
    assert {message["args"][0]["asset_id"] for message in celery_client.sent} == requeued


def test_supervisor_keeps_outstanding_job(supervised, make_asset, creative, celery_client, job_store):
    long_ago = datetime.utcnow() - timedelta(seconds=settings.processing_stale_after_seconds + 60)
    asset = make_asset(creative, status="PROCESSING", updated_at=long_ago)
    job_store.claim_slot(asset.id, "job-running", 3600)

    result = requeue_stale_assets.apply().get()

    assert result["requeued"] == [{"asset_id": asset.id, "job_id": "job-running"}]
    assert celery_client.sent == []
