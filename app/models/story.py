"""
Story Models
Story templates and the personalized stories generated from them.
"""

from enum import Enum
from typing import Any, Dict, Optional

from google.cloud.firestore import SERVER_TIMESTAMP
from pydantic import BaseModel, ConfigDict, Field


class StoryStatus(str, Enum):
    """Generated story status enumeration."""
    READY = "ready"


class StoryTemplate(BaseModel):
    """Story template with placeholder tokens. Extra fields are carried through."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    id: str = Field(description="Template document ID")
    title: Optional[str] = Field(default=None, description="Story title")
    cover_image_url: Optional[str] = Field(default=None, alias="coverImageUrl", description="Cover image URL")
    is_active: bool = Field(default=False, alias="isActive", description="Whether stories are generated from it")
    raw_content: str = Field(default="", alias="rawContent", description="Template text with [TOKEN] tags")

    @classmethod
    def from_dict(cls, doc_id: str, data: Dict[str, Any]) -> "StoryTemplate":
        """Create template from Firestore dictionary."""
        return cls.model_validate({**data, "id": doc_id})


def generated_story_id(child_id: str, template_id: str) -> str:
    """Document ID of the story generated for one child from one template."""
    return f"{child_id}-{template_id}"


class GeneratedStory(BaseModel):
    """Personalized story for one child and one template."""

    model_config = ConfigDict(populate_by_name=True)

    child_id: str = Field(alias="childId", description="Child document ID")
    story_template_id: str = Field(alias="storyTemplateId", description="Source template ID")
    generated_content: str = Field(alias="generatedContent", description="Personalized story text")
    title: Optional[str] = Field(default=None, description="Story title")
    cover_image_url: Optional[str] = Field(default=None, alias="coverImageUrl", description="Cover image URL")
    personalization_snapshot: Dict[str, Any] = Field(
        alias="personalizationSnapshot",
        description="Personalization data used for this generation",
    )
    status: StoryStatus = Field(default=StoryStatus.READY, description="Story status")

    @property
    def id(self) -> str:
        return generated_story_id(self.child_id, self.story_template_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert story to dictionary for Firestore storage."""
        data = self.model_dump(by_alias=True)
        data["status"] = self.status.value
        data["generatedAt"] = SERVER_TIMESTAMP
        return data
