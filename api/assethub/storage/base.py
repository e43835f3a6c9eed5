"""Base storage driver interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class BaseStorageDriver(ABC):
    """Base class for storage drivers.

    All storage drivers must implement this interface to provide
    unified access to object storage backends (S3-compatible, local).
    Keys are always relative to the driver's ``base_path``.
    """

    provider = "base"

    def __init__(self, config: Dict[str, Any]):
        """Initialize storage driver with configuration.

        Args:
            config: Storage configuration dict with provider-specific settings
        """
        self.config = config

    @abstractmethod
    async def download_file(self, file_path: str) -> bytes:
        """Download file and return bytes.

        Raises:
            StorageError: If download fails
            FileNotFoundError: If file doesn't exist
        """

    @abstractmethod
    async def upload_file(
        self, file_path: str, content: bytes, content_type: Optional[str] = None
    ) -> str:
        """Upload file and return its URI.

        Raises:
            StorageError: If upload fails
        """

    @abstractmethod
    async def object_exists(self, file_path: str) -> bool:
        """Check whether an object exists without downloading it.

        Raises:
            StorageConnectionError: If storage cannot be reached
        """

    @abstractmethod
    async def generate_upload_url(
        self, file_path: str, content_type: str, expires_in: int
    ) -> str:
        """Return a time-limited URL that accepts a PUT of the object."""

    @abstractmethod
    async def generate_download_url(
        self, file_path: str, filename: Optional[str], expires_in: int
    ) -> str:
        """Return a time-limited URL serving the object as an attachment."""

    @abstractmethod
    async def test_connection(self) -> bool:
        """Test if storage is accessible.

        Returns:
            True if connection successful, False otherwise
        """


class StorageError(Exception):
    """Base exception for storage operations."""


class StorageConfigurationError(StorageError):
    """Storage was never configured, or its configuration is unusable."""


class StorageConnectionError(StorageError):
    """Storage is configured but cannot be reached."""


class StoragePermissionError(StorageError):
    """Exception for permission errors."""
