#!/usr/bin/env python3
"""
Tests for S3AssetStore uploads.
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from src.compositor.errors import PersistenceError
from src.storage.memory_store import InMemoryAssetStore
from src.storage.s3_asset_store import S3AssetStore


class TestS3AssetStore:
    def setup_method(self):
        self.s3 = MagicMock()
        self.store = S3AssetStore("proposal-assets", region="us-east-2", s3_client=self.s3)

    def test_upload_returns_object_url(self):
        url = self.store.upload_asset(b"data", "proposals/p1/logos", "My Logo.png")

        kwargs = self.s3.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "proposal-assets"
        assert kwargs["Key"].startswith("proposals/p1/logos/")
        assert kwargs["Key"].endswith("-My-Logo.png")
        assert kwargs["ContentType"] == "image/png"
        assert kwargs["Metadata"] == {"original_filename": "My Logo.png"}
        assert url == f"https://proposal-assets.s3.us-east-2.amazonaws.com/{kwargs['Key']}"

    def test_explicit_content_type(self):
        self.store.upload_asset(b"data", "x", "clip", content_type="video/mp4")
        assert self.s3.put_object.call_args.kwargs["ContentType"] == "video/mp4"

    def test_unknown_type_falls_back_to_octet_stream(self):
        self.store.upload_asset(b"data", "", "blob")
        kwargs = self.s3.put_object.call_args.kwargs
        assert kwargs["ContentType"] == "application/octet-stream"
        assert kwargs["Key"].startswith("uploads/")

    def test_upload_failure(self):
        self.s3.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
        )
        with pytest.raises(PersistenceError):
            self.store.upload_asset(b"data", "x", "logo.png")

    def test_upload_connection_error(self):
        self.s3.put_object.side_effect = EndpointConnectionError(endpoint_url="https://s3.us-east-2.amazonaws.com")

        with pytest.raises(PersistenceError) as exc_info:
            self.store.upload_asset(b"data", "x", "logo.png")
        assert isinstance(exc_info.value.original_error, EndpointConnectionError)

    def test_url_without_region(self):
        store = S3AssetStore("bucket", s3_client=self.s3)
        assert store.object_url("a/b.png") == "https://bucket.s3.amazonaws.com/a/b.png"

    def test_bucket_required(self):
        with pytest.raises(ValueError):
            S3AssetStore("", s3_client=self.s3)


class TestInMemoryAssetStore:
    def test_urls_are_unique(self):
        store = InMemoryAssetStore()
        first = store.upload_asset(b"1", "/logos/", "a.png")
        second = store.upload_asset(b"2", "logos", "a.png")

        assert first == "memory://assets/logos/1-a.png"
        assert second == "memory://assets/logos/2-a.png"
        assert store.assets[first] == b"1"
