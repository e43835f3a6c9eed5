"""Pytest configuration and fixtures."""

import os
import time

os.environ.setdefault("DATABASE_DSN", "sqlite://")
os.environ.setdefault("STORAGE_PROVIDER", "")

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import LockError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from assethub.api.deps import get_processing_queue, get_redis, get_storage_gateway
from assethub.api.v1.endpoints.system import get_health_service
from assethub.config import settings
from assethub.database import Base, get_db
from assethub.main import app
from assethub.models.service_config import ServiceConfig
from assethub.models.tenant import Tenant
from assethub.models.user import User
from assethub.permissions import Role
from assethub.services.health_service import SystemHealthService
from assethub.services.job_store import ProcessingJobStore
from assethub.services.processing_queue import ProcessingQueue
from assethub.storage.gateway import StorageGateway
from assethub.storage.local_driver import LocalStorageDriver


class FakeRedisPipeline:
    def __init__(self, client):
        self.client = client
        self.calls = []

    def incr(self, key):
        self.calls.append(("incr", key))
        return self

    def pttl(self, key):
        self.calls.append(("pttl", key))
        return self

    def execute(self):
        results = [getattr(self.client, name)(key) for name, key in self.calls]
        self.calls = []
        return results


class FakeLock:
    """Non-blocking subset of redis-py's Lock."""

    def __init__(self, client, name, timeout=None):
        self.client = client
        self.name = name
        self.timeout = timeout

    def acquire(self, blocking=True):
        return bool(self.client.set(self.name, "locked", nx=True, ex=self.timeout))

    def release(self):
        if not self.client.delete(self.name):
            raise LockError("Cannot release an unlocked lock")


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands the app issues."""

    def __init__(self):
        self.data = {}
        self.expiry = {}

    def _purge(self, key):
        deadline = self.expiry.get(key)
        if deadline is not None and deadline <= time.time():
            self.data.pop(key, None)
            self.expiry.pop(key, None)

    def get(self, key):
        self._purge(key)
        return self.data.get(key)

    def set(self, key, value, nx=False, ex=None):
        self._purge(key)
        if nx and key in self.data:
            return None
        self.data[key] = value
        if ex is not None:
            self.expiry[key] = time.time() + ex
        return True

    def setex(self, key, ttl, value):
        seconds = ttl.total_seconds() if hasattr(ttl, "total_seconds") else ttl
        return self.set(key, value, ex=seconds)

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.expiry.pop(key, None)
        return removed

    def incr(self, key):
        self._purge(key)
        self.data[key] = int(self.data.get(key, 0)) + 1
        return self.data[key]

    def pttl(self, key):
        self._purge(key)
        if key not in self.data:
            return -2
        if key not in self.expiry:
            return -1
        return int((self.expiry[key] - time.time()) * 1000)

    def pexpire(self, key, ms):
        if key not in self.data:
            return False
        self.expiry[key] = time.time() + ms / 1000
        return True

    def pipeline(self):
        return FakeRedisPipeline(self)

    def lock(self, name, timeout=None):
        return FakeLock(self, name, timeout)

    def ping(self):
        return True

    def close(self):
        pass


class FakeCeleryClient:
    """Records the messages a ProcessingQueue sends."""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send_task(self, name, args=None, kwargs=None, **options):
        if self.fail:
            raise ConnectionError("broker unavailable")
        self.sent.append({"name": name, "args": args, **options})


@pytest.fixture
def test_engine():
    """In-memory SQLite shared by every session of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def test_db(session_factory):
    """Create a test database session."""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def celery_client():
    return FakeCeleryClient()


@pytest.fixture
def job_store(fake_redis):
    return ProcessingJobStore(fake_redis)


@pytest.fixture
def processing_queue(celery_client, job_store):
    return ProcessingQueue(celery_client, job_store, queue_name="asset-processing", slot_ttl_seconds=3600)


@pytest.fixture
def tenant(test_db):
    tenant = Tenant(name="Acme Studio")
    test_db.add(tenant)
    test_db.commit()
    test_db.refresh(tenant)
    return tenant


def _make_user(db, tenant, email, role):
    user = User(tenant_id=tenant.id, email=email, name=email.split("@")[0], role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(test_db, tenant):
    return _make_user(test_db, tenant, "admin@acme.test", Role.ADMIN)


@pytest.fixture
def manager(test_db, tenant):
    return _make_user(test_db, tenant, "manager@acme.test", Role.CONTENT_MANAGER)


@pytest.fixture
def reviewer(test_db, tenant):
    return _make_user(test_db, tenant, "reviewer@acme.test", Role.REVIEWER)


@pytest.fixture
def creative(test_db, tenant):
    return _make_user(test_db, tenant, "creative@acme.test", Role.CREATIVE)


@pytest.fixture
def viewer(test_db, tenant):
    return _make_user(test_db, tenant, "viewer@acme.test", Role.USER)


@pytest.fixture
def storage_dir(tmp_path):
    path = tmp_path / "storage"
    path.mkdir()
    return path


@pytest.fixture
def local_driver(storage_dir, tenant):
    return LocalStorageDriver(
        {
            "base_path": str(storage_dir),
            "public_base_url": "http://testserver",
            "signing_key": settings.secret_key,
            "tenant_id": tenant.id,
        }
    )


@pytest.fixture
def storage_gateway(local_driver):
    return StorageGateway(local_driver, ttl_seconds=600)


@pytest.fixture
def local_storage_config(test_db, tenant, storage_dir):
    """Persisted local storage config, as used by the signed URL endpoints."""
    config = ServiceConfig(tenant_id=tenant.id, kind="storage", provider="local", base_path=str(storage_dir))
    test_db.add(config)
    test_db.commit()
    return config


@pytest.fixture
def health_service(test_engine, local_driver, fake_redis, tmp_path):
    return SystemHealthService(test_engine, lambda: local_driver, fake_redis, temp_dir=str(tmp_path))


@pytest.fixture
def client(test_db, fake_redis, processing_queue, storage_gateway, health_service):
    """Test client with database, Redis, queue and storage overrides."""

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_processing_queue] = lambda: processing_queue
    app.dependency_overrides[get_storage_gateway] = lambda: storage_gateway
    app.dependency_overrides[get_health_service] = lambda: health_service

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    """Build request headers for a user."""

    def build(user):
        return {"X-Tenant-ID": str(user.tenant_id), "X-User-ID": str(user.id)}

    return build


@pytest.fixture
def make_asset(test_db, tenant):
    """Insert an asset row directly, bypassing the upload flow."""
    from assethub.models.asset import Asset

    counter = {"n": 0}

    def build(uploader, asset_type="IMAGE", status="COMPLETED", mime_type="image/png", **fields):
        counter["n"] += 1
        n = counter["n"]
        asset = Asset(
            tenant_id=tenant.id,
            title=fields.pop("title", f"Asset {n}"),
            type=asset_type,
            file_key=fields.pop("file_key", f"assets/{uploader.id}/{asset_type.lower()}/2026/10/{n}_abc123_file{n}.png"),
            filename=f"file{n}.png",
            original_filename=fields.pop("original_filename", f"file{n}.png"),
            mime_type=mime_type,
            file_size=fields.pop("file_size", 1024),
            processing_status=status,
            uploaded_by_id=uploader.id,
            **fields,
        )
        test_db.add(asset)
        test_db.commit()
        test_db.refresh(asset)
        return asset

    return build
