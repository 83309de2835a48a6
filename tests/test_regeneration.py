"""
Tests for the regeneration policy and batched story writes.

Run with: python -m pytest tests/test_regeneration.py -v
"""

import asyncio
import logging
from datetime import datetime

import pytest
from conftest import STORIES, add_stories, add_templates

from app.crud.story import GeneratedStoryCRUD
from app.models.events import ProfileChangeEvent, RegenerationAction
from app.services.local_store import WriteBatch
from app.services.regeneration import decide_action

PROFILE = {
    "name": "Amara",
    "interests": ["painting"],
    "culture": {"region": "Lagos", "holidays": ["Eid al-Fitr"]},
    "family": {"mother": {"name": "Ada"}},
}


def event(before=None, after=None, child_id="child-1"):
    return ProfileChangeEvent(child_id=child_id, before=before, after=after)


def stories_of(store, child_id="child-1"):
    return {
        doc_id: data
        for doc_id, data in store.collections.get(STORIES, {}).items()
        if data.get("childId") == child_id
    }


class TestDecideAction:

    def test_unchanged_personalization_is_skipped(self):
        after = dict(PROFILE, lastLogin="2026-10-17")
        assert decide_action(event(PROFILE, after)) == RegenerationAction.SKIP

    def test_changed_personalization_generates(self):
        after = dict(PROFILE, name="Amara Ade")
        assert decide_action(event(PROFILE, after)) == RegenerationAction.GENERATE

    def test_new_profile_generates(self):
        assert decide_action(event(None, PROFILE)) == RegenerationAction.GENERATE

    def test_deleted_profile_deletes(self):
        assert decide_action(event(PROFILE, None)) == RegenerationAction.DELETE

    def test_missing_on_both_sides_deletes(self):
        assert decide_action(event(None, None)) == RegenerationAction.DELETE


class TestGenerate:

    def test_skip_writes_nothing(self, store, regenerator):
        add_templates(store, 2)
        after = dict(PROFILE, lastLogin="2026-10-17")

        result = asyncio.run(regenerator.handle(event(PROFILE, after)))

        assert result.action == RegenerationAction.SKIP
        assert result.success
        assert store.commits == []
        assert stories_of(store) == {}

    def test_writes_one_story_per_active_template(self, store, regenerator):
        add_templates(store, 2, raw_content="[CHILD_NAME] loves [INTEREST_1] in [REGION].")
        add_templates(store, 1, active=False, prefix="draft")

        result = asyncio.run(regenerator.handle(event(None, PROFILE)))

        assert result.success
        assert result.action == RegenerationAction.GENERATE
        assert result.stories_written == 2
        assert result.batches_committed == 1

        stories = stories_of(store)
        assert set(stories) == {"child-1-tpl-0000", "child-1-tpl-0001"}

        story = stories["child-1-tpl-0000"]
        assert story["childId"] == "child-1"
        assert story["storyTemplateId"] == "tpl-0000"
        assert story["generatedContent"] == "Amara loves painting in Lagos."
        assert story["title"] == "Story 0"
        assert story["coverImageUrl"] == "https://example.com/tpl-0.png"
        assert story["status"] == "ready"
        assert isinstance(story["generatedAt"], datetime)
        assert story["personalizationSnapshot"]["name"] == "Amara"
        assert story["personalizationSnapshot"]["interests"] == ["painting"]
        assert story["personalizationSnapshot"]["pronouns"]["subjective"] == "they"

    def test_1200_templates_use_three_batches(self, store, regenerator):
        add_templates(store, 1200)

        result = asyncio.run(regenerator.handle(event(None, PROFILE)))

        assert result.success
        assert result.stories_written == 1200
        assert result.batches_committed == 3
        assert sorted(store.commits) == [200, 500, 500]
        assert len(stories_of(store)) == 1200

    def test_exactly_one_full_batch(self, store, regenerator):
        add_templates(store, 500)

        result = asyncio.run(regenerator.handle(event(None, PROFILE)))

        assert result.batches_committed == 1
        assert store.commits == [500]

    def test_no_active_templates_is_a_no_op(self, store, regenerator):
        add_templates(store, 3, active=False)

        result = asyncio.run(regenerator.handle(event(None, PROFILE)))

        assert result.success
        assert result.stories_written == 0
        assert store.commits == []

    def test_template_read_failure_is_a_no_op(self, store, regenerator, monkeypatch):
        add_templates(store, 3)

        async def failing_query(filters=None, limit=None):
            raise RuntimeError("firestore unavailable")

        monkeypatch.setattr(regenerator.templates, "query", failing_query)

        result = asyncio.run(regenerator.handle(event(None, PROFILE)))

        assert result.success
        assert result.stories_written == 0
        assert stories_of(store) == {}

    def test_regeneration_overwrites_in_place(self, store, regenerator):
        add_templates(store, 2, raw_content="[CHILD_NAME] of [REGION]")
        asyncio.run(regenerator.handle(event(None, PROFILE)))

        after = dict(PROFILE, name="Noor", culture={"holidays": ["Nowruz"]})
        asyncio.run(regenerator.handle(event(PROFILE, after)))

        stories = stories_of(store)
        assert len(stories) == 2
        story = stories["child-1-tpl-0000"]
        assert story["generatedContent"] == "Noor of their region"
        # The snapshot is replaced whole, not merged with the previous pass
        assert story["personalizationSnapshot"]["culture"] == {"holidays": ["Nowruz"]}

    def test_unchanged_inputs_give_identical_content(self, store, regenerator):
        add_templates(store, 1, raw_content="[CHILD_NAME] [INTEREST_2] [PET_NAME_2]")

        asyncio.run(regenerator.handle(event(None, PROFILE)))
        first = stories_of(store)["child-1-tpl-0000"]["generatedContent"]
        asyncio.run(regenerator.handle(event(None, PROFILE)))
        second = stories_of(store)["child-1-tpl-0000"]["generatedContent"]

        assert first == second == "Amara painting Snowball"

    def test_other_fields_on_existing_story_survive(self, store, regenerator):
        add_templates(store, 1)
        store.collections[STORIES] = {
            "child-1-tpl-0000": {"childId": "child-1", "readCount": 4},
        }

        asyncio.run(regenerator.handle(event(None, PROFILE)))

        assert stories_of(store)["child-1-tpl-0000"]["readCount"] == 4

    def test_failed_batch_is_reported_not_raised(self, store, regenerator, monkeypatch, caplog):
        add_templates(store, 1200)
        original_commit = WriteBatch.commit
        calls = {"count": 0}

        async def flaky_commit(self):
            calls["count"] += 1
            if calls["count"] == 2:
                raise RuntimeError("deadline exceeded")
            return await original_commit(self)

        monkeypatch.setattr(WriteBatch, "commit", flaky_commit)

        with caplog.at_level(logging.CRITICAL):
            result = asyncio.run(regenerator.handle(event(None, PROFILE)))

        assert not result.success
        assert result.action == RegenerationAction.GENERATE
        assert "1 of 3 batches failed" in result.error
        # Batches that committed stay committed
        assert len(stories_of(store)) == 700
        assert any(r.levelno == logging.CRITICAL for r in caplog.records)


class TestDelete:

    def test_deleted_profile_removes_its_stories(self, store, regenerator):
        add_stories(store, "child-1", 3)
        add_stories(store, "child-2", 2)

        result = asyncio.run(regenerator.handle(event(PROFILE, None)))

        assert result.success
        assert result.action == RegenerationAction.DELETE
        assert result.stories_deleted == 3
        assert result.batches_committed == 1
        assert stories_of(store) == {}
        assert len(stories_of(store, "child-2")) == 2

    def test_delete_failure_is_reported_not_raised(self, store, regenerator, monkeypatch):
        add_stories(store, "child-1", 3)

        async def failing_commit(self):
            raise RuntimeError("permission denied")

        monkeypatch.setattr(WriteBatch, "commit", failing_commit)

        result = asyncio.run(regenerator.handle(event(PROFILE, None)))

        assert not result.success
        assert result.error == "permission denied"
        assert len(stories_of(store)) == 3


class TestDeletionSweeper:

    @pytest.mark.parametrize("count, expected_batches", [
        (0, 0),
        (1, 1),
        (499, 1),
        (500, 1),
        (1000, 2),
        (1200, 3),
    ])
    def test_deletes_everything_in_ceil_n_over_500_batches(self, store, count, expected_batches):
        add_stories(store, "child-1", count)

        stats = asyncio.run(GeneratedStoryCRUD(store).delete_for_child("child-1"))

        assert stats.documents == count
        assert stats.batches == expected_batches
        assert len(store.commits) == expected_batches
        assert stories_of(store) == {}

    def test_small_page_size(self, store):
        add_stories(store, "child-1", 5)

        stats = asyncio.run(GeneratedStoryCRUD(store, max_batch_size=2).delete_for_child("child-1"))

        assert stats.documents == 5
        assert store.commits == [2, 2, 1]

    def test_read_helpers(self, store):
        add_stories(store, "child-1", 2)
        add_stories(store, "child-2", 1)
        crud = GeneratedStoryCRUD(store)

        story = asyncio.run(crud.get_story("child-1", "tpl-0001"))
        missing = asyncio.run(crud.get_story("child-1", "tpl-9999"))
        listed = asyncio.run(crud.list_for_child("child-1"))

        assert story["id"] == "child-1-tpl-0001"
        assert story["storyTemplateId"] == "tpl-0001"
        assert missing is None
        assert sorted(item["id"] for item in listed) == ["child-1-tpl-0000", "child-1-tpl-0001"]

    def test_running_again_is_a_no_op(self, store):
        add_stories(store, "child-1", 3)
        crud = GeneratedStoryCRUD(store)

        asyncio.run(crud.delete_for_child("child-1"))
        stats = asyncio.run(crud.delete_for_child("child-1"))

        assert stats.documents == 0
        assert stats.batches == 0
