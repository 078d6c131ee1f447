#!/usr/bin/env python3
"""
Storage factory for the proposal compositor.

Builds the document and asset stores from configuration. ``NO_NETWORK=1``
switches both to their in-memory versions for offline use.
"""

import logging
import os
from typing import Optional, Tuple

from src.common.config import CompositorConfig

from .base import AssetStore, DocumentStore
from .dynamo_document_store import DynamoDocumentStore
from .memory_store import InMemoryAssetStore, InMemoryDocumentStore
from .s3_asset_store import S3AssetStore

logger = logging.getLogger(__name__)


class StoreFactory:
    """Factory for document and asset store instances."""

    @staticmethod
    def create_document_store(config: CompositorConfig) -> DocumentStore:
        if os.getenv("NO_NETWORK") == "1":
            logger.info("NO_NETWORK=1 detected, using in-memory document store")
            return InMemoryDocumentStore()
        return DynamoDocumentStore(table_name=config.proposals_table, region=config.region)

    @staticmethod
    def create_asset_store(config: CompositorConfig) -> Optional[AssetStore]:
        """Create the asset store, or None when no bucket is configured."""
        if os.getenv("NO_NETWORK") == "1":
            logger.info("NO_NETWORK=1 detected, using in-memory asset store")
            return InMemoryAssetStore()
        if not config.assets_bucket:
            logger.warning("No assets bucket configured, logo and image uploads are disabled")
            return None
        return S3AssetStore(config.assets_bucket, region=config.region)

    @staticmethod
    def create_stores(config: CompositorConfig) -> Tuple[DocumentStore, Optional[AssetStore]]:
        return StoreFactory.create_document_store(config), StoreFactory.create_asset_store(config)
