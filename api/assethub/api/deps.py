"""API dependencies."""

from typing import Callable

from fastapi import Depends, Header, Request, Response
from sqlalchemy.orm import Session

from assethub.config import settings
from assethub.database import get_db
from assethub.errors import ForbiddenError, RateLimitExceededError, UnauthorizedError, ValidationError
from assethub.models.user import User
from assethub.permissions import has_permission
from assethub.services.processing_queue import ProcessingQueue
from assethub.services.rate_limiter import RATE_LIMIT_PRESETS, RateLimiter, client_ip
from assethub.storage.factory import get_storage_driver
from assethub.storage.gateway import StorageGateway

__all__ = [
    "get_db",
    "get_tenant_id",
    "get_current_user",
    "require_permission",
    "get_redis",
    "get_rate_limiter",
    "rate_limit",
    "get_processing_queue",
    "get_storage_gateway",
]


def get_tenant_id(x_tenant_id: str = Header(None)) -> int:
    """Get tenant ID from header."""
    if not x_tenant_id:
        raise ValidationError("X-Tenant-ID header is required")
    try:
        return int(x_tenant_id)
    except ValueError:
        raise ValidationError("X-Tenant-ID header must be an integer")


def get_current_user(
    x_user_id: str = Header(None),
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the caller forwarded by the authenticating gateway."""
    if not x_user_id or not x_user_id.isdigit():
        raise UnauthorizedError()

    user = (
        db.query(User)
        .filter(User.id == int(x_user_id), User.tenant_id == tenant_id, User.is_active.is_(True))
        .first()
    )
    if not user:
        raise UnauthorizedError("Unknown or inactive user")
    return user


def require_permission(permission: str) -> Callable[..., User]:
    """Dependency returning the caller if they hold ``permission``."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        if not has_permission(user.role, permission):
            raise ForbiddenError(f"Missing permission: {permission}")
        return user

    return dependency


def get_redis(request: Request):
    return request.app.state.redis


def get_rate_limiter(redis_client=Depends(get_redis)) -> RateLimiter:
    return RateLimiter(redis_client, enabled=settings.rate_limit_enabled)


def rate_limit(preset: str) -> Callable[..., None]:
    """Dependency enforcing a named rate limit preset per client IP and path."""
    rule = RATE_LIMIT_PRESETS[preset]

    def dependency(
        request: Request,
        response: Response,
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> None:
        peer = request.client.host if request.client else None
        key = f"{client_ip(request.headers, peer)}:{request.url.path}"
        result = limiter.check(key, rule.limit, rule.window_ms)

        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        response.headers["X-RateLimit-Reset"] = str(int(result.reset_at))
        if not result.allowed:
            raise RateLimitExceededError(
                "Too many requests, please try again later",
                retry_after=result.retry_after,
            )

    return dependency


def get_processing_queue(request: Request) -> ProcessingQueue:
    return request.app.state.processing_queue


def get_storage_gateway(
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> StorageGateway:
    """Storage gateway bound to the tenant's storage configuration."""
    driver = get_storage_driver(db, tenant_id)
    return StorageGateway(driver, ttl_seconds=settings.presigned_url_ttl_seconds)
