"""S3-compatible storage driver (AWS S3, Cloudflare R2, MinIO, etc)."""

from typing import Any, Dict, Optional

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from assethub.storage.base import (
    BaseStorageDriver,
    StorageConnectionError,
    StorageError,
    StoragePermissionError,
)

_NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")


class S3StorageDriver(BaseStorageDriver):
    """S3-compatible storage driver.

    Configuration:
        aws_access_key_id: Access key
        aws_secret_access_key: Secret key
        bucket_name: Bucket name
        region: AWS region (default: us-east-1)
        endpoint_url: Custom endpoint URL (for R2, MinIO, etc)
        base_path: Prefix path within bucket (optional)

    Example:
        >>> config = {
        ...     "aws_access_key_id": "AKIA...",
        ...     "aws_secret_access_key": "...",
        ...     "bucket_name": "my-bucket",
        ...     "region": "us-east-1"
        ... }
        >>> driver = S3StorageDriver(config)
        >>> url = await driver.generate_upload_url("assets/1/image/a.jpg", "image/jpeg", 3600)
    """

    provider = "s3"

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.bucket_name = config["bucket_name"]
        self.base_path = (config.get("base_path") or "").strip("/")

        self.s3_config = {
            "aws_access_key_id": config["aws_access_key_id"],
            "aws_secret_access_key": config["aws_secret_access_key"],
            "region_name": config.get("region", "us-east-1"),
        }

        # Support custom endpoint (Cloudflare R2, MinIO, etc)
        if config.get("endpoint_url"):
            self.s3_config["endpoint_url"] = config["endpoint_url"]

        self.session = aioboto3.Session()

    def _get_full_key(self, file_path: str) -> str:
        """Get full S3 key with base_path prefix."""
        if self.base_path:
            return f"{self.base_path}/{file_path}".strip("/")
        return file_path.strip("/")

    def _translate(self, e: Exception, action: str) -> StorageError:
        if isinstance(e, ClientError):
            code = e.response["Error"]["Code"]
            if code in ("403", "AccessDenied"):
                return StoragePermissionError(f"Access denied while trying to {action}: {e}")
            return StorageError(f"Failed to {action}: {e}")
        return StorageConnectionError(f"Storage unreachable while trying to {action}: {e}")

    async def download_file(self, file_path: str) -> bytes:
        key = self._get_full_key(file_path)

        try:
            async with self.session.client("s3", **self.s3_config) as s3:
                response = await s3.get_object(Bucket=self.bucket_name, Key=key)
                async with response["Body"] as stream:
                    return await stream.read()

        except ClientError as e:
            if e.response["Error"]["Code"] in _NOT_FOUND_CODES:
                raise FileNotFoundError(f"File not found: {file_path}")
            raise self._translate(e, "download file")
        except BotoCoreError as e:
            raise self._translate(e, "download file")

    async def upload_file(
        self, file_path: str, content: bytes, content_type: Optional[str] = None
    ) -> str:
        key = self._get_full_key(file_path)
        extra = {"ContentType": content_type} if content_type else {}

        try:
            async with self.session.client("s3", **self.s3_config) as s3:
                await s3.put_object(Bucket=self.bucket_name, Key=key, Body=content, **extra)

            return f"s3://{self.bucket_name}/{key}"

        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "upload file")

    async def object_exists(self, file_path: str) -> bool:
        key = self._get_full_key(file_path)

        try:
            async with self.session.client("s3", **self.s3_config) as s3:
                await s3.head_object(Bucket=self.bucket_name, Key=key)
            return True

        except ClientError as e:
            if e.response["Error"]["Code"] in _NOT_FOUND_CODES:
                return False
            raise self._translate(e, "check object")
        except BotoCoreError as e:
            raise self._translate(e, "check object")

    async def generate_upload_url(self, file_path: str, content_type: str, expires_in: int) -> str:
        try:
            async with self.session.client("s3", **self.s3_config) as s3:
                return await s3.generate_presigned_url(
                    "put_object",
                    Params={
                        "Bucket": self.bucket_name,
                        "Key": self._get_full_key(file_path),
                        "ContentType": content_type,
                    },
                    ExpiresIn=expires_in,
                )
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "sign upload URL")

    async def generate_download_url(
        self, file_path: str, filename: Optional[str], expires_in: int
    ) -> str:
        params = {"Bucket": self.bucket_name, "Key": self._get_full_key(file_path)}
        if filename:
            params["ResponseContentDisposition"] = f'attachment; filename="{filename}"'

        try:
            async with self.session.client("s3", **self.s3_config) as s3:
                return await s3.generate_presigned_url(
                    "get_object", Params=params, ExpiresIn=expires_in
                )
        except (ClientError, BotoCoreError) as e:
            raise self._translate(e, "sign download URL")

    async def test_connection(self) -> bool:
        """Test S3 connection by checking if bucket exists."""
        try:
            async with self.session.client("s3", **self.s3_config) as s3:
                await s3.head_bucket(Bucket=self.bucket_name)
            return True

        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            if error_code in ("404", "NoSuchBucket"):
                raise StorageConnectionError(f"Bucket not found: {self.bucket_name}")
            elif error_code == "403":
                raise StorageConnectionError(f"Access denied to bucket: {self.bucket_name}")
            return False

        except BotoCoreError as e:
            raise StorageConnectionError(f"Storage unreachable: {e}")
