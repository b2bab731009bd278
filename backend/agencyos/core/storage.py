"""
Object storage client for uploaded images (S3-compatible).

Organization logos and profile pictures live in separate buckets, each
served from its own public base URL.
"""

import logging
import time
from pathlib import Path
from uuid import UUID

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from agencyos.core.config import Settings, settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when an object could not be written to the bucket."""


class ImageStorage:
    """Uploads logo and avatar images and hands back their public URL."""

    def __init__(self, config: Settings | None = None) -> None:
        self.settings = config or settings
        self._session: aioboto3.Session | None = None

    def _get_session(self) -> aioboto3.Session:
        if self._session is None:
            self._session = aioboto3.Session(
                aws_access_key_id=self.settings.STORAGE_ACCESS_KEY,
                aws_secret_access_key=self.settings.STORAGE_SECRET_KEY,
            )
        return self._session

    @staticmethod
    def _get_extension(filename: str | None) -> str:
        ext = Path(filename or "").suffix.lower()
        return ext or ".png"

    @staticmethod
    def _timestamp() -> int:
        return int(time.time() * 1000)

    @staticmethod
    def public_url(base_url: str, key: str) -> str:
        return f"{base_url.rstrip('/')}/{key}"

    def logo_key(self, organization_id: UUID, filename: str | None) -> str:
        """Key format: logos/<org_id>_<unix-ms><ext>"""
        return f"logos/{organization_id}_{self._timestamp()}{self._get_extension(filename)}"

    def avatar_key(self, user_id: UUID, filename: str | None) -> str:
        """Key format: <user_id>/<unix-ms><ext>"""
        return f"{user_id}/{self._timestamp()}{self._get_extension(filename)}"

    async def _put(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        try:
            session = self._get_session()
            config = Config(signature_version="s3v4")
            async with session.client(
                "s3",
                endpoint_url=self.settings.STORAGE_ENDPOINT,
                config=config,
            ) as s3_client:
                await s3_client.put_object(
                    Bucket=bucket,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                    CacheControl="max-age=3600",
                )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Failed to upload %s/%s: %s", bucket, key, exc)
            raise StorageError(str(exc)) from exc

    async def upload_logo(
        self,
        organization_id: UUID,
        data: bytes,
        filename: str | None,
        content_type: str,
    ) -> str:
        """
        Put a logo in the logo bucket and return its public URL.

        Raises:
            StorageError: If the bucket rejects the write.
        """
        key = self.logo_key(organization_id, filename)
        await self._put(self.settings.STORAGE_BUCKET, key, data, content_type)
        logger.info("Uploaded logo for organization %s to %s", organization_id, key)
        return self.public_url(self.settings.STORAGE_PUBLIC_URL, key)

    async def upload_avatar(
        self,
        user_id: UUID,
        data: bytes,
        filename: str | None,
        content_type: str,
    ) -> str:
        """Put a profile picture in the avatar bucket and return its public URL."""
        key = self.avatar_key(user_id, filename)
        await self._put(self.settings.STORAGE_AVATAR_BUCKET, key, data, content_type)
        logger.info("Uploaded avatar for user %s to %s", user_id, key)
        return self.public_url(self.settings.STORAGE_AVATAR_PUBLIC_URL, key)


_storage: ImageStorage | None = None


def get_storage() -> ImageStorage:
    """Shared ImageStorage instance (FastAPI dependency)."""
    global _storage
    if _storage is None:
        _storage = ImageStorage()
    return _storage
