"""
Tests for turning collection snapshots into profile change events.

Run with: python -m pytest tests/test_profile_watcher.py -v
"""

import asyncio
import logging

import pytest
from conftest import STORIES, add_templates

from app.models.events import RegenerationAction
from app.services.profile_watcher import ProfileWatcher, dispatch_to_loop, parse_document_pattern


def write(store, doc_id, data):
    asyncio.run(store.collection("children").document(doc_id).set(data))


def remove(store, doc_id):
    asyncio.run(store.collection("children").document(doc_id).delete())


class TestParseDocumentPattern:

    def test_collection_path(self):
        assert parse_document_pattern("children/{childId}") == "children"

    def test_nested_collection_path(self):
        assert parse_document_pattern("families/f1/children/{childId}") == "families/f1/children"

    @pytest.mark.parametrize("pattern", ["children", "children/child-1", "{childId}", "/{childId}"])
    def test_rejects_patterns_without_wildcard(self, pattern):
        with pytest.raises(ValueError):
            parse_document_pattern(pattern)


class TestProfileWatcher:

    def setup_method(self):
        self.events = []

    def make_watcher(self, store):
        watcher = ProfileWatcher(store, "children/{childId}", self.events.append)
        watcher.start()
        return watcher

    def test_existing_documents_are_not_changes(self, store):
        write(store, "child-1", {"name": "Amara"})

        self.make_watcher(store)

        assert self.events == []

    def test_create_update_delete(self, store):
        watcher = self.make_watcher(store)

        write(store, "child-1", {"name": "Amara"})
        write(store, "child-1", {"name": "Noor"})
        remove(store, "child-1")

        created, updated, deleted = self.events
        assert (created.child_id, created.before, created.after) == ("child-1", None, {"name": "Amara"})
        assert (updated.before, updated.after) == ({"name": "Amara"}, {"name": "Noor"})
        assert (deleted.before, deleted.after) == ({"name": "Noor"}, None)
        assert deleted.is_deletion
        assert watcher.running

    def test_update_of_document_seen_in_first_snapshot(self, store):
        write(store, "child-1", {"name": "Amara"})
        self.make_watcher(store)

        write(store, "child-1", {"name": "Noor"})

        [changed] = self.events
        assert changed.before == {"name": "Amara"}

    def test_other_collections_are_ignored(self, store):
        self.make_watcher(store)

        asyncio.run(store.collection("storyTemplates").document("t1").set({"isActive": True}))

        assert self.events == []

    def test_stop_unsubscribes(self, store):
        watcher = self.make_watcher(store)
        watcher.stop()

        write(store, "child-1", {"name": "Amara"})

        assert self.events == []
        assert not watcher.running

    def test_handler_errors_are_logged(self, store, caplog):
        def failing_handler(event):
            raise RuntimeError("boom")

        ProfileWatcher(store, "children/{childId}", failing_handler).start()

        with caplog.at_level(logging.ERROR):
            write(store, "child-1", {"name": "Amara"})

        assert any("child-1" in r.getMessage() for r in caplog.records)

    def test_events_drive_regeneration(self, store, regenerator):
        add_templates(store, 2, raw_content="[CHILD_NAME]")
        self.make_watcher(store)

        write(store, "child-1", {"name": "Amara"})
        write(store, "child-1", {"name": "Amara", "lastLogin": "today"})
        remove(store, "child-1")

        results = [asyncio.run(regenerator.handle(e)) for e in self.events]

        assert [r.action for r in results] == [
            RegenerationAction.GENERATE,
            RegenerationAction.SKIP,
            RegenerationAction.DELETE,
        ]
        assert results[0].stories_written == 2
        assert results[2].stories_deleted == 2
        assert store.collections[STORIES] == {}


class TestDispatchToLoop:

    def test_schedules_handler_on_running_loop(self):
        seen = []

        async def handler(event):
            seen.append(event)
            return "done"

        async def main():
            loop = asyncio.get_running_loop()
            future = dispatch_to_loop(handler, loop)("event")
            return await asyncio.wrap_future(future)

        assert asyncio.run(main()) == "done"
        assert seen == ["event"]
