"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from assethub.api.v1 import api_router
from assethub.celery_app import create_celery_client
from assethub.config import settings
from assethub.database import engine
from assethub.errors import AppError, NotFoundError, ServerError, ValidationError
from assethub.middleware.request_context import RequestContextMiddleware
from assethub.services.health_service import SystemHealthService
from assethub.services.job_store import ProcessingJobStore
from assethub.services.processing_queue import ProcessingQueue
from assethub.storage.base import StorageConfigurationError, StorageConnectionError, StorageError
from assethub.storage.factory import get_default_storage_driver

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build shared clients at start-up and release them on shutdown."""
    redis_client = redis.from_url(settings.redis_url, decode_responses=True)
    celery_client = create_celery_client()

    app.state.redis = redis_client
    app.state.processing_queue = ProcessingQueue(
        celery_client,
        ProcessingJobStore(redis_client),
        queue_name=settings.processing_queue,
        slot_ttl_seconds=settings.processing_slot_ttl_seconds,
    )
    app.state.health_service = SystemHealthService(engine, get_default_storage_driver, redis_client)
    logger.info(f"AssetHub API started ({settings.environment})")

    try:
        yield
    finally:
        redis_client.close()
        celery_client.close()
        engine.dispose()
        logger.info("AssetHub API stopped")


app = FastAPI(
    title="AssetHub",
    description="Multi-tenant digital asset management service",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestContextMiddleware)


def _error_response(error: AppError) -> JSONResponse:
    headers = {}
    retry_after = getattr(error, "retry_after", None)
    if retry_after:
        headers["Retry-After"] = str(retry_after)
    return JSONResponse(status_code=error.status_code, content=error.to_dict(), headers=headers)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=True)
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return _error_response(ValidationError("Invalid request data", details=details))


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage error on {request.url.path}: {exc}", exc_info=True)
    if isinstance(exc, StorageConfigurationError):
        error = ServerError("Storage is not configured", details={"reason": "configuration"})
    elif isinstance(exc, StorageConnectionError):
        error = ServerError("Storage is temporarily unavailable", details={"reason": "unavailable"})
        error.status_code = 503
    else:
        error = ServerError("Storage operation failed")
    return _error_response(error)


@app.exception_handler(FileNotFoundError)
async def file_not_found_handler(request: Request, exc: FileNotFoundError):
    return _error_response(NotFoundError("File not found in storage"))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _error_response(ServerError())


# Include API router
app.include_router(api_router, prefix="/v1")


@app.get("/health")
@app.get("/v1/healthz")
async def health_check():
    """Liveness check. Dependency checks live at /v1/system/health."""
    return {"status": "ok", "environment": settings.environment}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "assethub.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
