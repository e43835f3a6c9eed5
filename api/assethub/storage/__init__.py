"""Storage drivers for multi-tenant asset management."""

from assethub.storage.base import (
    BaseStorageDriver,
    StorageConfigurationError,
    StorageConnectionError,
    StorageError,
)
from assethub.storage.factory import get_storage_driver
from assethub.storage.gateway import PreparedUpload, StorageGateway

__all__ = [
    "BaseStorageDriver",
    "StorageError",
    "StorageConfigurationError",
    "StorageConnectionError",
    "get_storage_driver",
    "PreparedUpload",
    "StorageGateway",
]
