"""System health endpoint."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from assethub.schemas.health import HealthStatus, SystemHealthResponse
from assethub.services.health_service import SystemHealthService

router = APIRouter()


def get_health_service(request: Request) -> SystemHealthService:
    return request.app.state.health_service


@router.get("/health", response_model=SystemHealthResponse)
def system_health(service: SystemHealthService = Depends(get_health_service)):
    """Per-dependency health. Unauthenticated; unhealthy answers 503."""
    report = service.run()
    status_code = 503 if report.status == HealthStatus.UNHEALTHY else 200
    return JSONResponse(
        status_code=status_code,
        content=report.model_dump(mode="json"),
        headers={"Cache-Control": "no-store, no-cache, must-revalidate"},
    )
