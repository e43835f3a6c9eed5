"""System health schemas."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel


class HealthStatus:
    """Health status values, ordered by severity."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

    SEVERITY = {HEALTHY: 0, DEGRADED: 1, UNHEALTHY: 2}


class DependencyHealth(BaseModel):
    status: str
    latency_ms: Optional[float] = None
    message: Optional[str] = None


class SystemHealthResponse(BaseModel):
    status: str
    checked_at: datetime
    checks: Dict[str, DependencyHealth]
