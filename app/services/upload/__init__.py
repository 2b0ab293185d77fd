"""Image upload validation and storage"""

from app.services.upload.image_validator import ImageInfo, detect_mime, validate_image
from app.services.upload.upload_service import UploadService, generate_upload_key, upload_service

__all__ = [
    "ImageInfo",
    "detect_mime",
    "validate_image",
    "UploadService",
    "generate_upload_key",
    "upload_service",
]
