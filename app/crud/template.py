"""
Story Template CRUD Operations
Read access to the story templates maintained by content editors.
"""

from typing import List, Optional

from google.cloud.firestore import AsyncClient
from pydantic import ValidationError

from app.crud.base import BaseCRUD
from app.models.story import StoryTemplate
from app.utils.logger import get_logger

logger = get_logger(__name__)


class TemplateCRUD(BaseCRUD):
    """Read operations for story template documents."""

    def __init__(self, db: AsyncClient, collection_name: str = "storyTemplates"):
        """Initialize template CRUD."""
        super().__init__(db)
        self._collection_name = collection_name

    @property
    def collection_name(self) -> str:
        """Get collection name."""
        return self._collection_name

    async def fetch_active(self) -> List[StoryTemplate]:
        """
        Fetch every active story template.

        Read failures are logged and reported as an empty list; callers
        treat that as "nothing to generate".

        Returns:
            Active templates in store order
        """
        try:
            docs = await self.query(filters=[("isActive", "==", True)])
        except Exception as e:
            logger.error(
                f"Template fetch failed: {e}",
                extra={"extra_data": {"collection": self.collection_name}},
                exc_info=True,
            )
            return []

        templates = []
        for doc in docs:
            template = self._parse(doc.id, doc.to_dict())
            if template is not None:
                templates.append(template)

        logger.debug(f"Fetched {len(templates)} active templates")
        return templates

    @staticmethod
    def _parse(doc_id: str, data: Optional[dict]) -> Optional[StoryTemplate]:
        try:
            return StoryTemplate.from_dict(doc_id, data or {})
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed template {doc_id}",
                extra={"extra_data": {"template_id": doc_id, "errors": e.errors()}},
            )
            return None
