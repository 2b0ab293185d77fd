"""S3 configuration for uploaded images"""

from typing import Optional

from pydantic_settings import BaseSettings


class S3Settings(BaseSettings):
    """S3 bucket holding profile and confession images"""

    AWS_REGION: str = "eu-central-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    BUCKET_NAME: str = ""
    ENDPOINT_URL: Optional[str] = None  # S3-compatible stores (MinIO, R2)
    PUBLIC_BASE_URL: Optional[str] = None  # CDN or public bucket origin
    UPLOAD_CACHE_CONTROL: str = "public, max-age=31536000, immutable"

    class Config:
        env_prefix = "S3_"


# Initialize settings
s3_settings = S3Settings()
