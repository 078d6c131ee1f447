"""Storage module for proposal documents and uploaded assets."""

from .base import AssetStore, DocumentStore
from .dynamo_document_store import DynamoDocumentStore
from .factory import StoreFactory
from .memory_store import InMemoryAssetStore, InMemoryDocumentStore
from .s3_asset_store import S3AssetStore

__all__ = [
    "DocumentStore",
    "AssetStore",
    "DynamoDocumentStore",
    "S3AssetStore",
    "InMemoryDocumentStore",
    "InMemoryAssetStore",
    "StoreFactory",
]
