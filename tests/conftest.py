"""Shared fixtures: an in-memory store and helpers to fill it."""

import pytest

from app.crud.story import GeneratedStoryCRUD
from app.crud.template import TemplateCRUD
from app.services.local_store import LocalStore
from app.services.regeneration import StoryRegenerator

TEMPLATES = "storyTemplates"
STORIES = "personalizedStories"


@pytest.fixture
def store():
    return LocalStore()


@pytest.fixture
def regenerator(store):
    return StoryRegenerator(
        templates=TemplateCRUD(store, collection_name=TEMPLATES),
        stories=GeneratedStoryCRUD(store, collection_name=STORIES),
    )


def add_templates(store, count, raw_content="Hello [CHILD_NAME]!", active=True, prefix="tpl"):
    """Insert templates straight into the store, bypassing batches."""
    docs = store.collections.setdefault(TEMPLATES, {})
    for i in range(count):
        docs[f"{prefix}-{i:04d}"] = {
            "title": f"Story {i}",
            "coverImageUrl": f"https://example.com/{prefix}-{i}.png",
            "isActive": active,
            "rawContent": raw_content,
        }


def add_stories(store, child_id, count):
    """Insert generated stories for a child straight into the store."""
    docs = store.collections.setdefault(STORIES, {})
    for i in range(count):
        docs[f"{child_id}-tpl-{i:04d}"] = {
            "childId": child_id,
            "storyTemplateId": f"tpl-{i:04d}",
            "generatedContent": "...",
            "status": "ready",
        }
