"""Storage driver factory."""

import json
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from assethub.config import settings
from assethub.encryption import decrypt_credentials
from assethub.models.service_config import ServiceConfig
from assethub.storage.base import BaseStorageDriver, StorageConfigurationError
from assethub.storage.local_driver import LocalStorageDriver
from assethub.storage.s3_driver import S3StorageDriver

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("local", "s3")
S3_REQUIRED_FIELDS = ("aws_access_key_id", "aws_secret_access_key", "bucket_name")


def get_storage_config(db: Session, tenant_id: int) -> Optional[ServiceConfig]:
    """Persisted storage configuration for a tenant, if any."""
    return (
        db.query(ServiceConfig)
        .filter(ServiceConfig.tenant_id == tenant_id, ServiceConfig.kind == "storage")
        .first()
    )


def resolve_driver_config(db: Session, tenant_id: int) -> Dict[str, Any]:
    """Merge the tenant's persisted storage config, or fall back to the platform default.

    Raises:
        StorageConfigurationError: If neither exists or credentials cannot be decrypted
    """
    config = get_storage_config(db, tenant_id)

    if config is None:
        default = settings.default_storage_config
        if not default:
            raise StorageConfigurationError(f"Storage not configured for tenant {tenant_id}")
        return dict(default)

    driver_config: Dict[str, Any] = {"provider": config.provider, "base_path": config.base_path}
    if config.options_json:
        driver_config.update(json.loads(config.options_json))

    if config.credentials_encrypted:
        try:
            driver_config.update(decrypt_credentials(config.credentials_encrypted))
        except ValueError as e:
            logger.error(f"Cannot decrypt storage credentials for tenant {tenant_id}: {e}")
            raise StorageConfigurationError("Stored storage credentials cannot be decrypted")

    return driver_config


def get_storage_driver(db: Session, tenant_id: int) -> BaseStorageDriver:
    """Get storage driver instance for tenant.

    Raises:
        StorageConfigurationError: If storage is not configured or unusable

    Example:
        >>> driver = get_storage_driver(db, tenant_id=1)
        >>> exists = await driver.object_exists("assets/1/image/2024/05/a.jpg")
    """
    driver_config = resolve_driver_config(db, tenant_id)
    return get_storage_driver_from_config(
        driver_config.pop("provider"),
        driver_config.pop("base_path", ""),
        driver_config,
        tenant_id=tenant_id,
    )


def get_storage_driver_from_config(
    provider: str,
    base_path: str,
    credentials: Optional[dict] = None,
    tenant_id: Optional[int] = None,
) -> BaseStorageDriver:
    """Get storage driver from explicit configuration.

    Example:
        >>> driver = get_storage_driver_from_config(
        ...     provider="local",
        ...     base_path="/tmp/assets"
        ... )
    """
    driver_config: Dict[str, Any] = {"base_path": base_path}
    if credentials:
        driver_config.update(credentials)

    provider = (provider or "").lower()

    if provider == "local":
        if not base_path:
            raise StorageConfigurationError("Local storage requires a base path")
        driver_config.setdefault("public_base_url", settings.public_base_url)
        driver_config.setdefault("signing_key", settings.secret_key)
        driver_config.setdefault("tenant_id", tenant_id if tenant_id is not None else "")
        return LocalStorageDriver(driver_config)

    if provider == "s3":
        missing = [f for f in S3_REQUIRED_FIELDS if not driver_config.get(f)]
        if missing:
            raise StorageConfigurationError(f"Missing required S3 configuration: {missing}")
        return S3StorageDriver(driver_config)

    raise StorageConfigurationError(f"Unsupported storage provider: {provider}")


def get_default_storage_driver() -> BaseStorageDriver:
    """Driver for the platform default storage configured in settings.

    Raises:
        StorageConfigurationError: If no platform storage is configured
    """
    default = settings.default_storage_config
    if not default:
        raise StorageConfigurationError("Platform storage is not configured")
    config = dict(default)
    return get_storage_driver_from_config(config.pop("provider"), config.pop("base_path", ""), config)
