"""
Child profile watcher.

Subscribes to the children collection with ``on_snapshot`` and turns each
document change into a ProfileChangeEvent carrying the before and after
state of the profile.
"""

import asyncio
import threading
from concurrent.futures import Future
from typing import Any, Callable, Coroutine, Dict, List, Optional

from app.models.events import ProfileChangeEvent
from app.utils.logger import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[ProfileChangeEvent], Any]


def parse_document_pattern(pattern: str) -> str:
    """
    Get the collection path from a document pattern like ``children/{childId}``.

    Raises:
        ValueError: If the last segment is not a ``{wildcard}``
    """
    collection_path, _, wildcard = pattern.rpartition("/")
    if not collection_path or not (wildcard.startswith("{") and wildcard.endswith("}")):
        raise ValueError(f"Document pattern must look like 'collection/{{id}}': {pattern!r}")
    return collection_path


def dispatch_to_loop(
    handler: Callable[[ProfileChangeEvent], Coroutine],
    loop: asyncio.AbstractEventLoop,
) -> Callable[[ProfileChangeEvent], Future]:
    """Wrap an async handler so listener threads can schedule it on a running loop."""

    def _dispatch(event: ProfileChangeEvent) -> Future:
        return asyncio.run_coroutine_threadsafe(handler(event), loop)

    return _dispatch


class ProfileWatcher:
    """Watches child profiles and emits change events."""

    def __init__(self, client: Any, document_pattern: str, on_event: EventHandler):
        """
        Initialize the watcher.

        Args:
            client: Firestore client with on_snapshot support (or LocalStore)
            document_pattern: Watched documents, e.g. ``children/{childId}``
            on_event: Called once per profile change
        """
        self.client = client
        self.collection_path = parse_document_pattern(document_pattern)
        self.on_event = on_event
        self._known: Dict[str, Optional[dict]] = {}
        self._primed = False
        self._watch = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._watch is not None

    def start(self) -> None:
        if self._watch is not None:
            return
        self._primed = False
        self._known.clear()
        self._watch = self.client.collection(self.collection_path).on_snapshot(self._on_snapshot)
        logger.info(f"Watching {self.collection_path} for profile changes")

    def stop(self) -> None:
        if self._watch is None:
            return
        self._watch.unsubscribe()
        self._watch = None
        logger.info(f"Stopped watching {self.collection_path}")

    def _on_snapshot(self, docs: List[Any], changes: List[Any], read_time: Any) -> None:
        with self._lock:
            # The first snapshot lists existing documents; those are not changes
            if not self._primed:
                self._known = {doc.id: doc.to_dict() for doc in docs}
                self._primed = True
                return

            events = [self._to_event(change) for change in changes]

        for event in events:
            try:
                self.on_event(event)
            except Exception as e:
                logger.error(
                    f"Profile change handler failed for {event.child_id}: {e}",
                    extra={"extra_data": {"child_id": event.child_id}},
                    exc_info=True,
                )

    def _to_event(self, change: Any) -> ProfileChangeEvent:
        doc = change.document
        before = self._known.get(doc.id)

        if change.type.name == "REMOVED":
            after = None
            self._known.pop(doc.id, None)
        else:
            after = doc.to_dict()
            self._known[doc.id] = after

        return ProfileChangeEvent(child_id=doc.id, before=before, after=after)
