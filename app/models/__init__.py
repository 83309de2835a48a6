"""
StoryWeaver Models
Firestore document representations and data models.
"""

from app.models.child import (
    ChildProfile,
    Culture,
    Family,
    Parent,
    Pronouns,
    PERSONALIZATION_FIELDS,
    personalization_changed,
)
from app.models.personalization import PersonalizationSnapshot, DEFAULT_INTERESTS, UNKNOWN_CHILD_NAME
from app.models.story import StoryTemplate, GeneratedStory, StoryStatus, generated_story_id
from app.models.events import ProfileChangeEvent, RegenerationAction, RegenerationResult

__all__ = [
    "ChildProfile",
    "Culture",
    "Family",
    "Parent",
    "Pronouns",
    "PERSONALIZATION_FIELDS",
    "personalization_changed",
    "PersonalizationSnapshot",
    "DEFAULT_INTERESTS",
    "UNKNOWN_CHILD_NAME",
    "StoryTemplate",
    "GeneratedStory",
    "StoryStatus",
    "generated_story_id",
    "ProfileChangeEvent",
    "RegenerationAction",
    "RegenerationResult",
]
