"""
Source file fetching from S3-compatible object storage.

Derives the object key from the stored file URL, signs a short-lived GET
URL with boto3 and downloads the bytes with httpx. Every failure along the
way is a BlobFetchError, which the pipeline retries.

Dependencies: boto3, httpx
System role: Object storage read path for file sources
"""

import logging

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from knowbase.configs import StorageSettings
from knowbase.core.exceptions import BlobFetchError

logger = logging.getLogger(__name__)


class BlobFetcher:
    """Fetch uploaded source files through presigned URLs."""

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        path_marker: str = "files/",
        signed_url_ttl_seconds: int = 60,
        fetch_timeout_seconds: float = 30.0,
        s3_client=None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize fetcher.

        Args:
            bucket: Bucket holding source files
            region: Bucket region
            endpoint_url: Custom endpoint for S3-compatible storage
            path_marker: URL segment preceding the object key
            signed_url_ttl_seconds: Presigned URL lifetime
            fetch_timeout_seconds: HTTP timeout for the download
            s3_client: Preconfigured boto3 S3 client
            http_client: Shared httpx client (one per call if None)
        """
        self._bucket = bucket
        self._path_marker = path_marker
        self._ttl = signed_url_ttl_seconds
        self._timeout = fetch_timeout_seconds
        self._s3_client = s3_client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
        )
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> "BlobFetcher":
        return cls(
            bucket=settings.bucket,
            region=settings.region,
            endpoint_url=settings.endpoint_url,
            path_marker=settings.path_marker,
            signed_url_ttl_seconds=settings.signed_url_ttl_seconds,
            fetch_timeout_seconds=settings.fetch_timeout_seconds,
        )

    def object_key(self, file_url: str) -> str:
        """
        Extract the object key: everything after the first path marker.

        Raises:
            BlobFetchError: URL does not contain the marker or has no key
        """
        _, marker, key = file_url.partition(self._path_marker)
        key = key.split("?", 1)[0]
        if not marker or not key:
            raise BlobFetchError(
                f"Cannot derive object key from file URL (marker '{self._path_marker}')",
                file_url=file_url,
            )
        return key

    def signed_url(self, file_url: str) -> str:
        """
        Generate a presigned GET URL for a stored file.

        Raises:
            BlobFetchError: Key derivation or URL signing failed
        """
        key = self.object_key(file_url)
        try:
            return self._s3_client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self._bucket, "Key": key},
                ExpiresIn=self._ttl,
            )
        except (ClientError, BotoCoreError) as e:
            raise BlobFetchError(
                f"Failed to generate signed URL: {e}",
                file_url=file_url,
                details={"key": key},
            ) from e

    async def fetch(self, file_url: str) -> bytes:
        """
        Download a stored file.

        Args:
            file_url: Stored object URL

        Returns:
            bytes: File content

        Raises:
            BlobFetchError: URL derivation, signing or download failed
        """
        url = self.signed_url(file_url)
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BlobFetchError(
                f"Failed to fetch file: HTTP {e.response.status_code}",
                file_url=file_url,
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise BlobFetchError(f"Failed to fetch file: {e}", file_url=file_url) from e

        logger.info(
            f"{__name__}:fetch - Fetched {len(response.content)} bytes",
            extra={"file_url": file_url},
        )
        return response.content
