"""System health checks."""

import logging
import os
import tempfile
import time
from datetime import datetime
from typing import Callable, Dict, Optional

from sqlalchemy import text

from assethub.schemas.health import DependencyHealth, HealthStatus, SystemHealthResponse
from assethub.storage.base import BaseStorageDriver, StorageConfigurationError
from assethub.storage.gateway import run_async

logger = logging.getLogger(__name__)

SLOW_DATABASE_MS = 1000


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class SystemHealthService:
    """Checks each dependency independently and reports the worst status."""

    def __init__(
        self,
        engine,
        storage_factory: Callable[[], BaseStorageDriver],
        redis_client,
        temp_dir: Optional[str] = None,
    ):
        self.engine = engine
        self.storage_factory = storage_factory
        self.redis_client = redis_client
        self.temp_dir = temp_dir or tempfile.gettempdir()

    def check_database(self) -> DependencyHealth:
        started = time.perf_counter()
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return DependencyHealth(status=HealthStatus.UNHEALTHY, message="Database unreachable")

        latency = _elapsed_ms(started)
        if latency > SLOW_DATABASE_MS:
            return DependencyHealth(status=HealthStatus.DEGRADED, latency_ms=latency, message="Slow response")
        return DependencyHealth(status=HealthStatus.HEALTHY, latency_ms=latency)

    def check_storage(self) -> DependencyHealth:
        try:
            driver = self.storage_factory()
        except StorageConfigurationError as e:
            return DependencyHealth(status=HealthStatus.DEGRADED, message=str(e))

        started = time.perf_counter()
        try:
            connected = run_async(driver.test_connection())
        except Exception as e:
            logger.warning(f"Storage health check failed: {e}")
            return DependencyHealth(status=HealthStatus.UNHEALTHY, message="Storage unreachable")

        if not connected:
            return DependencyHealth(status=HealthStatus.UNHEALTHY, message="Storage connection failed")
        return DependencyHealth(status=HealthStatus.HEALTHY, latency_ms=_elapsed_ms(started))

    def check_cache(self) -> DependencyHealth:
        started = time.perf_counter()
        try:
            self.redis_client.ping()
        except Exception as e:
            logger.warning(f"Cache health check failed: {e}")
            return DependencyHealth(status=HealthStatus.UNHEALTHY, message="Cache unreachable")
        return DependencyHealth(status=HealthStatus.HEALTHY, latency_ms=_elapsed_ms(started))

    def check_filesystem(self) -> DependencyHealth:
        started = time.perf_counter()
        try:
            fd, path = tempfile.mkstemp(prefix="health-", dir=self.temp_dir)
            try:
                os.write(fd, b"ok")
            finally:
                os.close(fd)
                os.unlink(path)
        except OSError as e:
            logger.warning(f"Filesystem health check failed: {e}")
            return DependencyHealth(status=HealthStatus.UNHEALTHY, message="Filesystem not writable")
        return DependencyHealth(status=HealthStatus.HEALTHY, latency_ms=_elapsed_ms(started))

    def run(self) -> SystemHealthResponse:
        checks: Dict[str, DependencyHealth] = {
            "database": self.check_database(),
            "storage": self.check_storage(),
            "cache": self.check_cache(),
            "filesystem": self.check_filesystem(),
        }
        overall = max(
            (check.status for check in checks.values()),
            key=lambda status: HealthStatus.SEVERITY[status],
        )
        return SystemHealthResponse(status=overall, checked_at=datetime.utcnow(), checks=checks)
