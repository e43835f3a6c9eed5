"""Storage gateway used by the upload, download and processing flows."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from assethub.storage.base import BaseStorageDriver
from assethub.storage.keys import generate_file_key, uploader_prefix

logger = logging.getLogger(__name__)

DEFAULT_URL_TTL_SECONDS = 3600


def run_async(coro):
    """Run a driver coroutine from synchronous code."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@dataclass
class PreparedUpload:
    file_key: str
    upload_url: str
    expires_at: datetime
    content_type: str


class StorageGateway:
    """Issues presigned URLs and moves bytes through a storage driver.

    Requesting a URL never touches the asset records; callers confirm an
    upload separately with :meth:`complete_upload`.
    """

    def __init__(self, driver: BaseStorageDriver, ttl_seconds: int = DEFAULT_URL_TTL_SECONDS):
        self.driver = driver
        self.ttl_seconds = ttl_seconds

    @property
    def provider(self) -> str:
        return self.driver.provider

    def prepare_upload(self, file_name: str, file_type: str, uploader_id: int) -> PreparedUpload:
        file_key = generate_file_key(file_name, file_type, uploader_id)
        upload_url = run_async(
            self.driver.generate_upload_url(file_key, file_type, self.ttl_seconds)
        )
        logger.debug(f"Prepared upload slot {file_key} for user {uploader_id}")
        return PreparedUpload(
            file_key=file_key,
            upload_url=upload_url,
            expires_at=datetime.utcnow() + timedelta(seconds=self.ttl_seconds),
            content_type=file_type,
        )

    def complete_upload(self, file_key: str) -> bool:
        """Confirm that the client actually pushed the object."""
        return run_async(self.driver.object_exists(file_key))

    def get_download_url(
        self,
        file_key: str,
        display_filename: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
    ) -> str:
        return run_async(
            self.driver.generate_download_url(
                file_key, display_filename, ttl_seconds or self.ttl_seconds
            )
        )

    def fetch(self, file_key: str) -> bytes:
        return run_async(self.driver.download_file(file_key))

    def put_variant(self, file_key: str, content: bytes, content_type: str) -> str:
        return run_async(self.driver.upload_file(file_key, content, content_type))

    def test_connection(self) -> bool:
        return run_async(self.driver.test_connection())

    @staticmethod
    def owns_key(file_key: str, user_id: int) -> bool:
        """Whether ``file_key`` lives in the uploader namespace of ``user_id``."""
        return file_key.startswith(uploader_prefix(user_id)) and ".." not in file_key
