"""Object storage adapters."""

from knowbase.boundary.storage.blob_fetcher import BlobFetcher

__all__ = ["BlobFetcher"]
