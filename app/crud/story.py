"""
Generated Story CRUD Operations
Batched upserts and per-child cleanup of personalized stories.
"""

import asyncio
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from google.cloud.firestore import AsyncClient

from app.crud.base import BaseCRUD
from app.models.story import GeneratedStory, generated_story_id
from app.utils.exceptions import BatchCommitError
from app.utils.logger import get_logger

logger = get_logger(__name__)

MAX_BATCH_SIZE = 500


class WriteStats(NamedTuple):
    """Documents touched and batches committed by a bulk operation."""
    documents: int
    batches: int


class GeneratedStoryCRUD(BaseCRUD):
    """CRUD operations for generated story documents."""

    def __init__(
        self,
        db: AsyncClient,
        collection_name: str = "personalizedStories",
        max_batch_size: int = MAX_BATCH_SIZE,
    ):
        """Initialize generated story CRUD."""
        super().__init__(db)
        self._collection_name = collection_name
        self.max_batch_size = max_batch_size

    @property
    def collection_name(self) -> str:
        """Get collection name."""
        return self._collection_name

    async def get_story(self, child_id: str, template_id: str) -> Optional[Dict[str, Any]]:
        """Get the story generated for a child from a template."""
        return await self.get_by_id(generated_story_id(child_id, template_id))

    async def list_for_child(self, child_id: str) -> List[Dict[str, Any]]:
        """List every generated story of a child."""
        items = []
        for doc in await self.query(filters=[("childId", "==", child_id)]):
            data = doc.to_dict()
            data["id"] = doc.id
            items.append(data)
        return items

    async def upsert_many(self, stories: Iterable[GeneratedStory]) -> WriteStats:
        """
        Merge-write stories in batches of at most ``max_batch_size`` writes.

        Every top-level field written replaces the stored value entirely, so
        no nested data from an earlier generation survives. All batches are
        committed concurrently; batches that committed stay committed when
        another one fails.

        Args:
            stories: Stories to write

        Returns:
            Number of stories written and batches committed

        Raises:
            BatchCommitError: If any batch failed to commit
        """
        batches = [self.db.batch()]
        batch_sizes = [0]

        for story in stories:
            if batch_sizes[-1] >= self.max_batch_size:
                batches.append(self.db.batch())
                batch_sizes.append(0)

            data = story.to_dict()
            batches[-1].set(self.document(story.id), data, merge=list(data))
            batch_sizes[-1] += 1

        if batch_sizes[-1] == 0:
            return WriteStats(documents=0, batches=0)

        results = await asyncio.gather(
            *(batch.commit() for batch in batches),
            return_exceptions=True,
        )

        failed = [
            (index, result)
            for index, result in enumerate(results)
            if isinstance(result, BaseException)
        ]
        if failed:
            first_error = failed[0][1]
            raise BatchCommitError(
                message=f"{len(failed)} of {len(batches)} batches failed to commit: {first_error}",
                details={
                    "batches_total": len(batches),
                    "batches_failed": [index for index, _ in failed],
                    "stories_lost": sum(batch_sizes[index] for index, _ in failed),
                },
            ) from first_error

        logger.debug(f"Committed {len(batches)} story batches: {batch_sizes}")
        return WriteStats(documents=sum(batch_sizes), batches=len(batches))

    async def delete_for_child(self, child_id: str) -> WriteStats:
        """
        Delete every generated story of a child, one page per batch.

        Stops on an empty page or on a page shorter than ``max_batch_size``.
        Pages deleted before a failure stay deleted; running it again is safe.

        Args:
            child_id: Child document ID

        Returns:
            Number of stories deleted and batches committed
        """
        deleted = 0
        commits = 0

        while True:
            docs = await self.query(
                filters=[("childId", "==", child_id)],
                limit=self.max_batch_size,
            )
            if not docs:
                break

            batch = self.db.batch()
            for doc in docs:
                batch.delete(doc.reference)
            await batch.commit()

            deleted += len(docs)
            commits += 1

            if len(docs) < self.max_batch_size:
                break

        return WriteStats(documents=deleted, batches=commits)
