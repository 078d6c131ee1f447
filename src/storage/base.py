"""Collaborator interfaces for proposal persistence and asset upload."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class DocumentStore(ABC):
    """Stores proposal documents as flat top-level fields."""

    @abstractmethod
    def fetch_document(self, document_id: str) -> Dict[str, Any]:
        """
        Fetch a proposal document.

        Args:
            document_id: Proposal ID

        Returns:
            The stored document as a dict

        Raises:
            DocumentNotFoundError: If no document has this ID
        """
        pass

    @abstractmethod
    def update_document(
        self, document_id: str, fields: Dict[str, Any], actor_id: str, actor_name: str
    ) -> None:
        """
        Merge top-level fields into a stored document.

        Each key in ``fields`` replaces the stored value of that key. There is
        no version check, so the last write wins.

        Args:
            document_id: Proposal ID
            fields: Top-level fields to replace
            actor_id: ID of the user making the change
            actor_name: Display name of the user making the change

        Raises:
            PersistenceError: If the store rejects the update
        """
        pass


class AssetStore(ABC):
    """Uploads binary assets and hands back a URL."""

    @abstractmethod
    def upload_asset(
        self, data: bytes, path_hint: str, filename: str, content_type: Optional[str] = None
    ) -> str:
        """
        Upload a file.

        Args:
            data: File content
            path_hint: Folder-like prefix for the stored object
            filename: Original file name
            content_type: Optional MIME type

        Returns:
            URL of the stored asset

        Raises:
            PersistenceError: If the upload fails
        """
        pass
