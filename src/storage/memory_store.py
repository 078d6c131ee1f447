"""In-memory document and asset stores for offline use and tests."""

import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

from src.compositor.errors import DocumentNotFoundError, PersistenceError

from .base import AssetStore, DocumentStore

logger = logging.getLogger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """Document store that keeps proposals in a dict."""

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None):
        self.documents: Dict[str, Dict[str, Any]] = copy.deepcopy(documents or {})
        self.updates: List[Tuple[str, Dict[str, Any], str, str]] = []
        # Set to an exception instance to make the next update fail
        self.fail_next_update: Optional[Exception] = None

    def put(self, document: Dict[str, Any]) -> None:
        self.documents[document["id"]] = copy.deepcopy(document)

    def fetch_document(self, document_id: str) -> Dict[str, Any]:
        if document_id not in self.documents:
            raise DocumentNotFoundError(f"Proposal {document_id} not found", document_id=document_id)
        return copy.deepcopy(self.documents[document_id])

    def update_document(
        self, document_id: str, fields: Dict[str, Any], actor_id: str, actor_name: str
    ) -> None:
        if self.fail_next_update is not None:
            error, self.fail_next_update = self.fail_next_update, None
            raise PersistenceError(
                f"Failed to update proposal {document_id}", document_id=document_id, original_error=error
            )
        if document_id not in self.documents:
            raise DocumentNotFoundError(f"Proposal {document_id} not found", document_id=document_id)

        self.updates.append((document_id, copy.deepcopy(fields), actor_id, actor_name))
        self.documents[document_id].update(copy.deepcopy(fields))
        self.documents[document_id]["updated_by"] = actor_id
        self.documents[document_id]["updated_by_name"] = actor_name
        logger.info(f"Updated in-memory proposal {document_id} fields {sorted(fields)}")


class InMemoryAssetStore(AssetStore):
    """Asset store that keeps uploaded bytes in a dict keyed by URL."""

    def __init__(self, base_url: str = "memory://assets"):
        self.base_url = base_url.rstrip("/")
        self.assets: Dict[str, bytes] = {}

    def upload_asset(
        self, data: bytes, path_hint: str, filename: str, content_type: Optional[str] = None
    ) -> str:
        url = f"{self.base_url}/{path_hint.strip('/')}/{len(self.assets) + 1}-{filename}"
        self.assets[url] = bytes(data)
        return url
