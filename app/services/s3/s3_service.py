"""S3 service for storing uploaded images"""

import logging
from typing import Optional
from urllib.parse import urlparse

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.services.s3.s3_config import S3Settings

logger = logging.getLogger(__name__)


class S3Service:
    """Service for managing S3 operations for uploaded images"""

    def __init__(self):
        """Initialize S3 service - credentials are loaded lazily on first use"""
        self._session = None
        self._config = None
        self._cached_access_key = None

    def _get_settings(self) -> S3Settings:
        """Get fresh settings from environment.

        This ensures settings are read at usage time, not at import time
        when env vars may not be loaded yet.
        """
        return S3Settings()

    def _get_session(self):
        """Get or create aioboto3 session with current credentials."""
        settings = self._get_settings()
        access_key = settings.AWS_ACCESS_KEY_ID

        # Create new session if credentials changed or not initialized
        if self._session is None or self._cached_access_key != access_key:
            self._session = aioboto3.Session(
                aws_access_key_id=access_key,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                region_name=settings.AWS_REGION,
            )
            self._cached_access_key = access_key
            self._config = Config(
                region_name=settings.AWS_REGION,
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "adaptive"},
            )
            logger.info(
                f"S3 session initialized with access key: {access_key[:8]}..."
                if access_key
                else "S3 session initialized with empty credentials"
            )

        return self._session, self._config

    def _client(self):
        session, config = self._get_session()
        return session.client("s3", config=config, endpoint_url=self._get_settings().ENDPOINT_URL)

    @property
    def bucket_name(self) -> str:
        return self._get_settings().BUCKET_NAME

    async def upload_bytes(self, data: bytes, s3_key: str, content_type: str) -> str:
        """
        Upload raw bytes to S3

        Args:
            data: File content
            s3_key: S3 key (path) where the file will be stored
            content_type: Verified MIME type of the file

        Returns:
            Public URL of the stored object

        Raises:
            ClientError: If S3 upload fails
        """
        settings = self._get_settings()
        try:
            async with self._client() as s3_client:
                logger.info(f"Uploading {len(data)} bytes to s3://{settings.BUCKET_NAME}/{s3_key}")
                await s3_client.put_object(
                    Bucket=settings.BUCKET_NAME,
                    Key=s3_key,
                    Body=data,
                    ContentType=content_type,
                    CacheControl=settings.UPLOAD_CACHE_CONTROL,
                )
                logger.info(f"Successfully uploaded {s3_key} to S3")
                return self.public_url(s3_key)

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload {s3_key} to S3: {e}", exc_info=True)
            raise

    async def delete_file(self, s3_key: str) -> bool:
        """
        Delete a file from S3

        Returns:
            True if deletion successful, False otherwise
        """
        try:
            async with self._client() as s3_client:
                await s3_client.delete_object(Bucket=self.bucket_name, Key=s3_key)
                logger.info(f"Successfully deleted {s3_key} from S3")
                return True

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete {s3_key} from S3: {e}", exc_info=True)
            return False

    async def delete_by_url(self, url: str) -> bool:
        """Delete the object behind a public URL we issued; foreign URLs are ignored."""
        s3_key = self.key_from_url(url)
        if s3_key is None:
            logger.debug(f"Not an S3 object URL, skipping delete: {url}")
            return False
        return await self.delete_file(s3_key)

    def public_url(self, s3_key: str) -> str:
        settings = self._get_settings()
        if settings.PUBLIC_BASE_URL:
            return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/{s3_key}"
        if settings.ENDPOINT_URL:
            return f"{settings.ENDPOINT_URL.rstrip('/')}/{settings.BUCKET_NAME}/{s3_key}"
        return f"https://{settings.BUCKET_NAME}.s3.{settings.AWS_REGION}.amazonaws.com/{s3_key}"

    def key_from_url(self, url: str) -> Optional[str]:
        """Inverse of ``public_url``; None when the URL is not under our bucket."""
        if not url:
            return None
        prefix = self.public_url("")
        if not url.startswith(prefix):
            return None
        s3_key = urlparse(url[len(prefix):]).path.lstrip("/")
        return s3_key or None


# Global instance
s3_service = S3Service()
