"""
Seed script to populate the store with sample story templates and a child.

Usage:
    python scripts/seed_data.py                          # write to Firestore
    python scripts/seed_data.py --json seed_output/seed.json   # write a LocalStore seed file
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.config import get_settings  # noqa: E402
from app.dependencies import get_db_client  # noqa: E402
from app.utils.logger import configure_logging, get_logger  # noqa: E402

logger = get_logger(__name__)


# ── Sample Templates ────────────────────────────────────────────────

SAMPLE_TEMPLATES = {
    "lantern-festival": {
        "title": "The Lantern Festival",
        "coverImageUrl": "https://example.com/covers/lantern-festival.png",
        "isActive": True,
        "rawContent": (
            "On the night of [HOLIDAY], [CHILD_NAME] carried a paper lantern through "
            "the streets of [REGION]. [PRONOUN_SUBJECTIVE] held it high so that "
            "[MOTHER_NAME] and [FATHER_NAME] could find [PRONOUN_OBJECTIVE] in the crowd.\n\n"
            "[PET_NAME_1] trotted alongside, sniffing at every glowing window. "
            "\"This is the best part of [CULTURE_CUSTOM],\" [CHILD_NAME] said to "
            "[PRONOUN_REFLEXIVE], and smiled."
        ),
        "ageRange": "4-7",
    },
    "backyard-expedition": {
        "title": "The Backyard Expedition",
        "coverImageUrl": "https://example.com/covers/backyard-expedition.png",
        "isActive": True,
        "rawContent": (
            "[CHILD_NAME] packed [PRONOUN_POSSESSIVE] bag for a day of [INTEREST_1]. "
            "By lunch the plan had turned into [INTEREST_2], and by sunset into "
            "[INTEREST_3]. [PET_NAME_1] and [PET_NAME_2] followed every step of the way."
        ),
        "ageRange": "3-6",
    },
    "winter-draft": {
        "title": "A Quiet Winter (draft)",
        "coverImageUrl": None,
        "isActive": False,
        "rawContent": "[CHILD_NAME] watched the snow fall over [REGION].",
    },
}

SAMPLE_CHILDREN = {
    "child-amara": {
        "name": "Amara",
        "pronouns": {
            "subjective": "she",
            "objective": "her",
            "possessive": "her",
            "reflexive": "herself",
        },
        "interests": ["painting", "rock climbing"],
        "culture": {
            "region": "Lagos",
            "holidays": ["Eid al-Fitr"],
            "customs": ["sharing sallah meals"],
        },
        "family": {
            "mother": {"name": "Mama Ada"},
            "pets": ["Kofi"],
        },
    },
}


def build_seed() -> dict:
    settings = get_settings()
    return {
        settings.templates_collection: SAMPLE_TEMPLATES,
        settings.children_collection: SAMPLE_CHILDREN,
    }


async def seed_store() -> int:
    """Write sample documents to the configured store in one batch."""
    db = get_db_client(get_settings())
    batch = db.batch()
    count = 0
    for coll_name, docs in build_seed().items():
        for doc_id, data in docs.items():
            batch.set(db.collection(coll_name).document(doc_id), data)
            count += 1
    await batch.commit()
    return count


def main():
    parser = argparse.ArgumentParser(description="Seed sample story templates and children")
    parser.add_argument("--json", dest="json_path", help="Write a LocalStore seed file instead of using the store")
    args = parser.parse_args()

    configure_logging(debug=get_settings().debug)

    if args.json_path:
        path = Path(args.json_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(build_seed(), f, indent=2)
        logger.info(f"Wrote seed file: {path}")
        return

    count = asyncio.run(seed_store())
    logger.info(f"Seeded {count} documents")


if __name__ == "__main__":
    main()
