"""
Child Profile Models
Represents child-profile documents stored in Firestore.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from app.utils.logger import get_logger

logger = get_logger(__name__)

# Fields whose changes require the child's stories to be regenerated
PERSONALIZATION_FIELDS = ("name", "pronouns", "interests", "culture", "family")


def _null_non_strings(value: Any) -> Any:
    """Keep list positions, turning entries that are not strings into None."""
    if isinstance(value, (list, tuple)):
        return [item if isinstance(item, str) else None for item in value]
    return value


class Pronouns(BaseModel):
    """Pronoun set used when narrating about the child."""

    model_config = ConfigDict(extra="allow", frozen=True)

    subjective: str = Field(default="they", description="e.g. she / he / they")
    objective: str = Field(default="them", description="e.g. her / him / them")
    possessive: str = Field(default="their", description="e.g. her / his / their")
    reflexive: str = Field(default="themselves", description="e.g. herself / himself")

    @field_validator("subjective", "objective", "possessive", "reflexive", mode="before")
    @classmethod
    def default_missing_pronoun(cls, value: Any, info: ValidationInfo) -> Any:
        """Null, empty or non-string entries take the default of that entry only."""
        if isinstance(value, str) and value:
            return value
        return cls.model_fields[info.field_name].default


class Parent(BaseModel):
    """A parent entry inside the family block."""

    model_config = ConfigDict(extra="allow", frozen=True)

    name: Optional[str] = Field(default=None, description="Name the child uses for the parent")


class Family(BaseModel):
    """Family members and pets."""

    model_config = ConfigDict(extra="allow", frozen=True)

    mother: Optional[Parent] = Field(default=None, description="Mother")
    father: Optional[Parent] = Field(default=None, description="Father")
    pets: List[Optional[str]] = Field(default_factory=list, description="Pet names, favourite first")

    @field_validator("pets", mode="before")
    @classmethod
    def normalize_pets(cls, value: Any) -> Any:
        return _null_non_strings(value)


class Culture(BaseModel):
    """Cultural background of the child."""

    model_config = ConfigDict(extra="allow", frozen=True)

    region: Optional[str] = Field(default=None, description="Home region")
    holidays: List[Optional[str]] = Field(default_factory=list, description="Celebrated holidays")
    customs: List[Optional[str]] = Field(default_factory=list, description="Family customs")

    @field_validator("holidays", "customs", mode="before")
    @classmethod
    def normalize_lists(cls, value: Any) -> Any:
        return _null_non_strings(value)


def _drop_error_location(data: Dict[str, Any], loc: Tuple[Any, ...]) -> Optional[str]:
    """
    Remove the deepest mapping entry named by a validation error location.

    Returns:
        Dotted path of the removed entry, or None if nothing could be removed
    """
    node: Any = data
    parent: Optional[Dict[str, Any]] = None
    path: List[str] = []
    for part in loc:
        if not isinstance(node, dict) or part not in node:
            break
        parent = node
        path.append(str(part))
        node = node[part]

    if parent is None:
        return None
    parent.pop(path[-1])
    return ".".join(path)


class ChildProfile(BaseModel):
    """Child profile as written by the upstream app. Every field is optional."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    child_id: Optional[str] = Field(default=None, alias="childId", description="Child document ID")
    name: Optional[str] = Field(default=None, description="Child's name")
    pronouns: Optional[Pronouns] = Field(default=None, description="Pronoun set")
    interests: List[Optional[str]] = Field(default_factory=list, description="Interests, most important first")
    culture: Optional[Culture] = Field(default=None, description="Cultural background")
    family: Optional[Family] = Field(default=None, description="Family members and pets")

    @field_validator("interests", mode="before")
    @classmethod
    def normalize_interests(cls, value: Any) -> Any:
        return _null_non_strings(value)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]], child_id: Optional[str] = None) -> "ChildProfile":
        """
        Create a profile from a Firestore dictionary without ever failing.

        Values that do not validate are dropped at the deepest level the
        error names, so only that value falls back to its default and its
        valid siblings are kept.

        Args:
            data: Raw document data (may be None or malformed)
            child_id: Document ID, used when the data has no childId

        Returns:
            Parsed child profile
        """
        raw: Dict[str, Any] = copy.deepcopy(dict(data)) if isinstance(data, Mapping) else {}
        if child_id is not None and "childId" not in raw:
            raw["childId"] = child_id

        dropped: List[str] = []
        while True:
            try:
                return cls.model_validate(raw)
            except ValidationError as e:
                removed = [
                    path
                    for path in (_drop_error_location(raw, tuple(error["loc"])) for error in e.errors())
                    if path
                ]
                if not removed:
                    # Error not attributable to a single value; keep only what we know
                    logger.warning("Unparseable child profile %s, using defaults", child_id)
                    return cls(childId=child_id)
                dropped.extend(removed)
                logger.warning(
                    "Dropped malformed profile values for %s: %s",
                    child_id,
                    ", ".join(sorted(dropped)),
                    extra={"extra_data": {"child_id": child_id, "dropped_fields": dropped}},
                )


def personalization_changed(
    before: Optional[Mapping[str, Any]],
    after: Optional[Mapping[str, Any]],
) -> bool:
    """
    Compare the personalization fields of two raw profile documents.

    Uses deep value equality, so map key order never counts as a change.
    """
    before = before or {}
    after = after or {}
    return any(before.get(field) != after.get(field) for field in PERSONALIZATION_FIELDS)
