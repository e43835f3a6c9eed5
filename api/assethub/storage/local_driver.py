"""Local filesystem storage driver."""

import hashlib
import hmac
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

import aiofiles

from assethub.storage.base import BaseStorageDriver, StorageError


def sign_local_url(
    secret: str, method: str, key: str, expires: int, tenant_id: Any = "", filename: str = ""
) -> str:
    """HMAC-SHA256 signature over method, tenant, key, expiry and download filename."""
    message = f"{method.upper()}\n{tenant_id}\n{key}\n{expires}\n{filename}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_local_signature(
    secret: str,
    method: str,
    key: str,
    expires: int,
    signature: str,
    tenant_id: Any = "",
    filename: str = "",
    now: Optional[float] = None,
) -> bool:
    """Check a local storage URL signature and that it has not expired."""
    now = time.time() if now is None else now
    if expires < now:
        return False
    expected = sign_local_url(secret, method, key, expires, tenant_id, filename or "")
    return hmac.compare_digest(expected, signature or "")


class LocalStorageDriver(BaseStorageDriver):
    """Local filesystem storage driver.

    Presigned URLs point back at the API (``/v1/storage/local/{key}``) and
    carry an HMAC signature with an embedded expiry.

    Configuration:
        base_path: Absolute path to storage directory
        public_base_url: Externally reachable API base URL
        signing_key: Secret used to sign URLs
        tenant_id: Tenant the URLs are bound to

    Example:
        >>> driver = LocalStorageDriver({"base_path": "/data/assets/tenant-1"})
        >>> url = await driver.generate_download_url("assets/1/logo.png", "logo.png", 600)
    """

    provider = "local"

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.base_path = Path(config["base_path"])
        self.public_base_url = config.get("public_base_url", "").rstrip("/")
        self.signing_key = config.get("signing_key", "")
        self.tenant_id = config.get("tenant_id", "")

        # Ensure base_path is absolute for security
        if not self.base_path.is_absolute():
            self.base_path = self.base_path.resolve()

    def _validate_path(self, file_path: str) -> Path:
        """Validate path is within base_path (prevent directory traversal).

        Raises:
            StorageError: If path tries to escape base_path
        """
        full_path = (self.base_path / file_path).resolve()

        try:
            full_path.relative_to(self.base_path.resolve())
        except ValueError:
            raise StorageError(f"Path {file_path} attempts to escape base directory")

        return full_path

    def _signed_url(self, method: str, file_path: str, expires_in: int, filename: Optional[str] = None) -> str:
        expires = int(time.time()) + expires_in
        params = {
            "tenant": self.tenant_id,
            "expires": expires,
            "signature": sign_local_url(
                self.signing_key, method, file_path, expires, self.tenant_id, filename or ""
            ),
        }
        if filename:
            params["filename"] = filename
        return f"{self.public_base_url}/v1/storage/local/{quote(file_path)}?{urlencode(params)}"

    async def download_file(self, file_path: str) -> bytes:
        full_path = self._validate_path(file_path)

        if not full_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        async with aiofiles.open(full_path, "rb") as f:
            return await f.read()

    async def upload_file(
        self, file_path: str, content: bytes, content_type: Optional[str] = None
    ) -> str:
        full_path = self._validate_path(file_path)
        full_path.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(full_path, "wb") as f:
            await f.write(content)

        return str(full_path.relative_to(self.base_path))

    async def object_exists(self, file_path: str) -> bool:
        return self._validate_path(file_path).is_file()

    async def generate_upload_url(self, file_path: str, content_type: str, expires_in: int) -> str:
        self._validate_path(file_path)
        return self._signed_url("PUT", file_path, expires_in)

    async def generate_download_url(
        self, file_path: str, filename: Optional[str], expires_in: int
    ) -> str:
        self._validate_path(file_path)
        return self._signed_url("GET", file_path, expires_in, filename)

    async def test_connection(self) -> bool:
        """Base path exists and is writable."""
        return self.base_path.is_dir() and os.access(self.base_path, os.R_OK | os.W_OK)
