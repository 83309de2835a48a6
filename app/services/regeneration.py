"""
Story regeneration on child-profile changes.

Each profile change event resolves to one of three actions: skip it when
no personalization field changed, sweep the child's stories when the
profile was deleted, or regenerate one story per active template.
"""

import time
from typing import Any, Mapping, Optional

from google.cloud.firestore import AsyncClient

from app.config import Settings
from app.crud.story import GeneratedStoryCRUD, WriteStats
from app.crud.template import TemplateCRUD
from app.models.child import ChildProfile, personalization_changed
from app.models.events import ProfileChangeEvent, RegenerationAction, RegenerationResult
from app.models.personalization import PersonalizationSnapshot
from app.models.story import GeneratedStory, StoryStatus, StoryTemplate
from app.services.personalization.builder import build_personalization
from app.services.personalization.engine import find_unresolved_tokens, personalize_template
from app.utils.logger import get_logger

logger = get_logger(__name__)


def decide_action(event: ProfileChangeEvent) -> RegenerationAction:
    """
    Decide what a profile change requires.

    Args:
        event: Profile change event

    Returns:
        SKIP when both states exist and no personalization field changed,
        DELETE when the profile no longer exists, GENERATE otherwise
    """
    if event.before is not None and event.after is not None:
        if not personalization_changed(event.before, event.after):
            return RegenerationAction.SKIP

    if event.is_deletion:
        return RegenerationAction.DELETE

    return RegenerationAction.GENERATE


class StoryRegenerator:
    """Keeps a child's personalized stories in line with the child's profile."""

    def __init__(self, templates: TemplateCRUD, stories: GeneratedStoryCRUD):
        """
        Initialize the regenerator.

        Args:
            templates: Template source
            stories: Generated story storage
        """
        self.templates = templates
        self.stories = stories

    @classmethod
    def from_client(cls, db: AsyncClient, settings: Settings) -> "StoryRegenerator":
        """Build a regenerator over one store client using configured collections."""
        return cls(
            templates=TemplateCRUD(db, collection_name=settings.templates_collection),
            stories=GeneratedStoryCRUD(
                db,
                collection_name=settings.stories_collection,
                max_batch_size=settings.max_batch_size,
            ),
        )

    async def handle(self, event: ProfileChangeEvent) -> RegenerationResult:
        """
        Process one profile change event to completion.

        Write failures are logged as critical and reported in the result;
        they are never raised or retried.

        Args:
            event: Profile change event

        Returns:
            Result describing the action taken and its outcome
        """
        child_id = event.child_id
        action = decide_action(event)

        if action == RegenerationAction.SKIP:
            logger.info(f"Skipping processing for {child_id}: No relevant changes detected")
            return RegenerationResult(child_id=child_id, action=action)

        start_time = time.monotonic()
        try:
            if action == RegenerationAction.DELETE:
                logger.info(f"Removing stories for deleted child: {child_id}")
                stats = await self.stories.delete_for_child(child_id)
                result = RegenerationResult(
                    child_id=child_id,
                    action=action,
                    stories_deleted=stats.documents,
                    batches_committed=stats.batches,
                )
            else:
                stats = await self.regenerate(child_id, event.after)
                result = RegenerationResult(
                    child_id=child_id,
                    action=action,
                    stories_written=stats.documents,
                    batches_committed=stats.batches,
                )
        except Exception as e:
            logger.critical(
                f"Critical failure for child {child_id}: {e}",
                extra={"extra_data": {
                    "child_id": child_id,
                    "action": action.value,
                    "details": getattr(e, "details", {}),
                }},
                exc_info=True,
            )
            return RegenerationResult(child_id=child_id, action=action, success=False, error=str(e))

        logger.info(
            f"Successfully processed stories for child: {child_id}",
            extra={"extra_data": {
                **result.model_dump(mode="json"),
                "duration_seconds": round(time.monotonic() - start_time, 3),
            }},
        )
        return result

    async def regenerate(self, child_id: str, profile: Optional[Mapping[str, Any]]) -> WriteStats:
        """
        Regenerate one story per active template for a child.

        Args:
            child_id: Child document ID
            profile: Raw child profile data

        Returns:
            Number of stories written and batches committed

        Raises:
            BatchCommitError: If any batch failed to commit
        """
        snapshot = build_personalization(ChildProfile.from_dict(profile, child_id=child_id))
        templates = await self.templates.fetch_active()

        if not templates:
            logger.info("No active templates found")
            return WriteStats(documents=0, batches=0)

        snapshot_data = snapshot.to_dict()
        stories = [self.render(child_id, template, snapshot, snapshot_data) for template in templates]
        return await self.stories.upsert_many(stories)

    @staticmethod
    def render(
        child_id: str,
        template: StoryTemplate,
        snapshot: PersonalizationSnapshot,
        snapshot_data: Optional[dict] = None,
    ) -> GeneratedStory:
        """Personalize one template into a story document for a child."""
        content = personalize_template(template, snapshot)

        unresolved = find_unresolved_tokens(content)
        if unresolved:
            logger.warning(
                f"Template {template.id} left unknown tokens: {', '.join(unresolved)}",
                extra={"extra_data": {"template_id": template.id, "tokens": unresolved}},
            )

        return GeneratedStory(
            child_id=child_id,
            story_template_id=template.id,
            generated_content=content,
            title=template.title,
            cover_image_url=template.cover_image_url,
            personalization_snapshot=snapshot_data if snapshot_data is not None else snapshot.to_dict(),
            status=StoryStatus.READY,
        )
