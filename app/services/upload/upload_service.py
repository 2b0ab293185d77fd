"""Validated image uploads to blob storage"""

import logging
import uuid
from typing import Optional

from app.services.auth.authorization import AuthUser, require_auth
from app.services.s3 import s3_service
from app.services.upload.image_validator import validate_image
from app.utils.constants import UPLOAD_KEY_PREFIX
from app.utils.errors import server_action
from app.utils.response_utils import success

logger = logging.getLogger(__name__)


def generate_upload_key(extension: str) -> str:
    """Opaque storage key; the client's filename is never used."""
    return f"{UPLOAD_KEY_PREFIX}/{uuid.uuid4()}.{extension}"


class UploadService:
    """Service for image uploads"""

    @server_action
    async def upload_image(
        self,
        data: bytes,
        caller: Optional[AuthUser],
        declared_size: Optional[int] = None,
    ) -> dict:
        caller = require_auth(caller)
        info = validate_image(data, declared_size)

        s3_key = generate_upload_key(info.extension)
        url = await s3_service.upload_bytes(data, s3_key, info.mime)

        logger.info(
            f"User {caller.id} uploaded {s3_key} ({info.mime}, {info.width}x{info.height})"
        )
        return success(url=url, width=info.width, height=info.height)


# Global instance
upload_service = UploadService()
