"""Builds the fully-defaulted personalization snapshot for a child."""

from typing import Any, Mapping, Optional, Union

from app.models.child import ChildProfile, Culture, Family, Pronouns
from app.models.personalization import DEFAULT_INTERESTS, UNKNOWN_CHILD_NAME, PersonalizationSnapshot


def build_personalization(
    profile: Union[ChildProfile, Mapping[str, Any], None],
) -> PersonalizationSnapshot:
    """
    Normalize a child profile into a personalization snapshot.

    Each top-level field is defaulted on its own. Nested values that are
    still missing are handled by the per-token fallbacks of the
    substitution engine.

    Args:
        profile: Parsed profile, raw Firestore dictionary, or None

    Returns:
        Snapshot with name, pronouns, interests, culture and family populated
    """
    if not isinstance(profile, ChildProfile):
        profile = ChildProfile.from_dict(profile)

    return PersonalizationSnapshot(
        name=profile.name or UNKNOWN_CHILD_NAME,
        # Missing entries of a partial pronoun set come from the model defaults
        pronouns=_copy_or_default(profile.pronouns, Pronouns),
        interests=tuple(profile.interests) if any(profile.interests) else DEFAULT_INTERESTS,
        culture=_copy_or_default(profile.culture, Culture),
        family=_copy_or_default(profile.family, Family),
    )


def _copy_or_default(value: Optional[Any], factory):
    if value is None:
        return factory()
    return value.model_copy(deep=True)
