"""
Template personalization engine.

Replaces the fixed ``[TOKEN]`` tags of a story template with values taken
from a personalization snapshot. Tokens are matched literally and values
are inserted verbatim; tags that are not in the token table stay as they are.
"""

import re
from typing import Dict, List, Optional, Sequence

from app.models.personalization import PersonalizationSnapshot
from app.models.story import StoryTemplate

HOLIDAY_FALLBACK = "a special holiday"
CULTURE_CUSTOM_FALLBACK = "a local tradition"
REGION_FALLBACK = "their region"
MOTHER_NAME_FALLBACK = "Mom"
FATHER_NAME_FALLBACK = "Dad"
PET_NAME_1_FALLBACK = "Buddy"
PET_NAME_2_FALLBACK = "Snowball"

FIXED_TOKENS = (
    "CHILD_NAME",
    "PRONOUN_SUBJECTIVE",
    "PRONOUN_OBJECTIVE",
    "PRONOUN_POSSESSIVE",
    "PRONOUN_REFLEXIVE",
    "HOLIDAY",
    "CULTURE_CUSTOM",
    "REGION",
    "MOTHER_NAME",
    "FATHER_NAME",
    "PET_NAME_1",
    "PET_NAME_2",
)
INTEREST_TOKENS = ("INTEREST_1", "INTEREST_2", "INTEREST_3")

# Substitution order: fixed tokens first, then the numbered interests
TOKEN_MATCHERS: Dict[str, "re.Pattern[str]"] = {
    token: re.compile(re.escape(f"[{token}]"))
    for token in FIXED_TOKENS + INTEREST_TOKENS
}

_ANY_TOKEN = re.compile(r"\[[A-Z][A-Z0-9_]*\]")


def _item(values: Sequence[Optional[str]], index: int, fallback: Optional[str]) -> Optional[str]:
    """values[index] when present and non-empty, otherwise fallback."""
    if index < len(values) and values[index]:
        return values[index]
    return fallback


def build_replacements(snapshot: PersonalizationSnapshot) -> Dict[str, str]:
    """
    Resolve the value of every known token for one snapshot.

    Args:
        snapshot: Personalization snapshot

    Returns:
        Ordered mapping of token name to replacement text
    """
    culture = snapshot.culture
    family = snapshot.family
    pronouns = snapshot.pronouns
    interests = snapshot.interests

    replacements = {
        "CHILD_NAME": snapshot.name,
        "PRONOUN_SUBJECTIVE": pronouns.subjective,
        "PRONOUN_OBJECTIVE": pronouns.objective,
        "PRONOUN_POSSESSIVE": pronouns.possessive,
        "PRONOUN_REFLEXIVE": pronouns.reflexive,
        "HOLIDAY": _item(culture.holidays, 0, HOLIDAY_FALLBACK),
        "CULTURE_CUSTOM": _item(culture.customs, 0, CULTURE_CUSTOM_FALLBACK),
        "REGION": culture.region or REGION_FALLBACK,
        "MOTHER_NAME": (family.mother and family.mother.name) or MOTHER_NAME_FALLBACK,
        "FATHER_NAME": (family.father and family.father.name) or FATHER_NAME_FALLBACK,
        "PET_NAME_1": _item(family.pets, 0, PET_NAME_1_FALLBACK),
        "PET_NAME_2": _item(family.pets, 1, PET_NAME_2_FALLBACK),
    }

    # Null entries keep their position; the first named interest fills gaps
    first_interest = next((interest for interest in interests if interest), interests[0])
    for number, token in enumerate(INTEREST_TOKENS, start=1):
        replacements[token] = _item(interests, number - 1, first_interest)

    return replacements


def substitute_tokens(raw_content: str, replacements: Dict[str, str]) -> str:
    """Replace every occurrence of each known token, in table order."""
    content = raw_content
    for token, matcher in TOKEN_MATCHERS.items():
        value = replacements[token]
        # A callable replacement keeps backslashes in the value literal
        content = matcher.sub(lambda _match, text=value: text, content)
    return content


def personalize_template(template: StoryTemplate, snapshot: PersonalizationSnapshot) -> str:
    """
    Produce the personalized content of one template for one child.

    Args:
        template: Story template
        snapshot: Personalization snapshot

    Returns:
        Template content with all known tokens substituted
    """
    return substitute_tokens(template.raw_content, build_replacements(snapshot))


def find_unresolved_tokens(content: str) -> List[str]:
    """List the distinct ``[UPPER_CASE]`` tags still present in content."""
    return sorted(set(_ANY_TOKEN.findall(content)))
