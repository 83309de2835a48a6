"""
Base CRUD Class
Base class for Firestore CRUD operations.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from google.cloud.firestore import AsyncClient


class BaseCRUD(ABC):
    """
    Base CRUD class for Firestore operations.

    Works with ``google.cloud.firestore.AsyncClient`` and with the in-memory
    ``LocalStore``, which exposes the same surface.
    """

    def __init__(self, db: AsyncClient):
        """
        Initialize CRUD with Firestore client.

        Args:
            db: Firestore async client (or LocalStore)
        """
        self.db = db

    @property
    @abstractmethod
    def collection_name(self) -> str:
        """Get collection name. Must be implemented by subclass."""
        pass

    def get_collection(self) -> Any:
        """
        Get Firestore collection reference.

        Returns:
            Firestore collection reference
        """
        return self.db.collection(self.collection_name)

    def document(self, doc_id: str) -> Any:
        """Get a document reference in this collection."""
        return self.get_collection().document(doc_id)

    async def get_by_id(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Get document by ID.

        Args:
            doc_id: Document ID

        Returns:
            Document data or None if not found
        """
        doc = await self.document(doc_id).get()
        if doc.exists:
            data = doc.to_dict()
            data["id"] = doc.id
            return data
        return None

    async def query(
        self,
        filters: Optional[List[tuple]] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        """
        Get document snapshots matching filters.

        Args:
            filters: List of (field, operator, value) tuples for filtering
            limit: Maximum number of documents

        Returns:
            List of document snapshots
        """
        query = self.get_collection()

        if filters:
            for field, operator, value in filters:
                query = query.where(field, operator, value)

        if limit is not None:
            query = query.limit(limit)

        return await query.get()

