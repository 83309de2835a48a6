"""
Personalization Snapshot Model
Fully-defaulted view of a child profile used for one regeneration pass.
"""

from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from app.models.child import Culture, Family, Pronouns

UNKNOWN_CHILD_NAME = "[Unknown Child]"
DEFAULT_INTERESTS: Tuple[str, ...] = ("adventure", "discovery", "friendship")


class PersonalizationSnapshot(BaseModel):
    """Immutable personalization data; every top-level field is populated."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Child's name or placeholder")
    pronouns: Pronouns = Field(default_factory=Pronouns, description="Pronoun set")
    interests: Tuple[Optional[str], ...] = Field(min_length=1, description="Interests, at least one named")
    culture: Culture = Field(default_factory=Culture, description="Cultural background")
    family: Family = Field(default_factory=Family, description="Family members and pets")

    def to_dict(self) -> Dict[str, Any]:
        """Convert snapshot to a plain dictionary for Firestore storage."""
        return {
            "name": self.name,
            "pronouns": self.pronouns.model_dump(),
            "interests": list(self.interests),
            # exclude_unset keeps an absent culture/family as {}
            "culture": self.culture.model_dump(exclude_unset=True),
            "family": self.family.model_dump(exclude_unset=True),
        }
