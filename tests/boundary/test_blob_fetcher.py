"""Tests for BlobFetcher key derivation, URL signing and download."""

from unittest.mock import MagicMock

import httpx
import pytest
from botocore.exceptions import ClientError

from knowbase.boundary.storage import BlobFetcher
from knowbase.configs import StorageSettings
from knowbase.core.exceptions import BlobFetchError

FILE_URL = "https://storage.example.com/object/public/files/42/handbook.pdf"


@pytest.fixture
def s3_client() -> MagicMock:
    client = MagicMock()
    client.generate_presigned_url.return_value = "https://signed.example.com/42/handbook.pdf?sig=abc"
    return client


def _fetcher(s3_client: MagicMock, handler) -> BlobFetcher:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BlobFetcher(bucket="files", s3_client=s3_client, http_client=http_client)


class TestObjectKey:
    def test_key_after_first_marker(self, s3_client: MagicMock) -> None:
        fetcher = BlobFetcher(bucket="files", s3_client=s3_client)

        assert fetcher.object_key(FILE_URL) == "42/handbook.pdf"
        assert fetcher.object_key("https://s/files/42/files/a.txt?token=1") == "42/files/a.txt"

    def test_missing_marker(self, s3_client: MagicMock) -> None:
        fetcher = BlobFetcher(bucket="files", s3_client=s3_client)

        with pytest.raises(BlobFetchError):
            fetcher.object_key("https://storage.example.com/other/42/a.pdf")


class TestSignedUrl:
    def test_signs_get_object(self, s3_client: MagicMock) -> None:
        fetcher = BlobFetcher(bucket="files", s3_client=s3_client, signed_url_ttl_seconds=60)

        url = fetcher.signed_url(FILE_URL)

        assert url.startswith("https://signed.example.com/")
        s3_client.generate_presigned_url.assert_called_once_with(
            ClientMethod="get_object",
            Params={"Bucket": "files", "Key": "42/handbook.pdf"},
            ExpiresIn=60,
        )

    def test_signing_failure_is_retryable(self, s3_client: MagicMock) -> None:
        s3_client.generate_presigned_url.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "GetObject"
        )
        fetcher = BlobFetcher(bucket="files", s3_client=s3_client)

        with pytest.raises(BlobFetchError) as exc_info:
            fetcher.signed_url(FILE_URL)

        assert exc_info.value.retryable is True


class TestFetch:
    """Test BlobFetcher.fetch()."""

    @pytest.mark.asyncio
    async def test_downloads_signed_url(self, s3_client: MagicMock) -> None:
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, content=b"%PDF-1.4 bytes")

        blob = await _fetcher(s3_client, handler).fetch(FILE_URL)

        assert blob == b"%PDF-1.4 bytes"
        assert requested == ["https://signed.example.com/42/handbook.pdf?sig=abc"]

    @pytest.mark.asyncio
    async def test_http_error_status(self, s3_client: MagicMock) -> None:
        fetcher = _fetcher(s3_client, lambda request: httpx.Response(503))

        with pytest.raises(BlobFetchError) as exc_info:
            await fetcher.fetch(FILE_URL)

        assert exc_info.value.details["status_code"] == 503
        assert exc_info.value.details["file_url"] == FILE_URL

    @pytest.mark.asyncio
    async def test_transport_error(self, s3_client: MagicMock) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(BlobFetchError):
            await _fetcher(s3_client, handler).fetch(FILE_URL)


def test_from_settings() -> None:
    settings = StorageSettings(
        bucket="kb-files",
        region="eu-west-1",
        endpoint_url="http://localhost:9000",
        path_marker="uploads/",
    )

    fetcher = BlobFetcher.from_settings(settings)

    assert fetcher.object_key("http://localhost:9000/uploads/1/a.txt") == "1/a.txt"
