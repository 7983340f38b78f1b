"""
Object storage configuration.

Source files live in an S3-compatible bucket and are fetched through
short-lived presigned URLs.

Dependencies: pydantic, pydantic_settings
System role: Blob storage configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from knowbase.configs.base import BaseSettings


class StorageSettings(BaseSettings):
    """S3-compatible storage configuration for source files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STORAGE_",
        case_sensitive=False,
        extra="ignore",
    )

    bucket: str = Field(default="files", description="Bucket holding uploaded source files")
    region: str = Field(default="us-east-1", description="Bucket region")
    endpoint_url: str | None = Field(
        default=None,
        description="Custom endpoint for S3-compatible storage",
    )
    path_marker: str = Field(
        default="files/",
        description="Segment of the stored file URL that precedes the object key",
    )
    signed_url_ttl_seconds: int = Field(default=60, gt=0)
    fetch_timeout_seconds: float = Field(default=30.0, gt=0)
