"""Upload router for images"""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile, status

from app.schemas.common import ACTION_ERRORS
from app.services.auth import AuthUser, get_current_user
from app.services.upload import upload_service
from app.utils.constants import MAX_UPLOAD_SIZE_BYTES
from app.utils.errors import ValidationError
from app.utils.response_utils import action_response

router = APIRouter(prefix="/upload", tags=["Upload"], responses=ACTION_ERRORS)


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    user: Optional[AuthUser] = Depends(get_current_user),
):
    """
    Upload an image and get back its public URL.

    The file type is decided from its content, never from its name or the
    declared content type. Oversized files are rejected before being read.
    """
    if file.size is not None and file.size > MAX_UPLOAD_SIZE_BYTES:
        return action_response(ValidationError("File too large. Maximum size is 5MB.").to_result())

    # Read one byte past the limit so oversized bodies without a size are still caught
    data = await file.read(MAX_UPLOAD_SIZE_BYTES + 1)
    result = await upload_service.upload_image(data, user, declared_size=file.size)
    return action_response(result, status.HTTP_201_CREATED)
