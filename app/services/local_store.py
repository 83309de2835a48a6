"""
In-memory data store that mimics the Firestore async client.
Used when no Firebase credentials are found, and by the test suite.

Supports the surface the service relies on: collection/document references,
equality queries with limits, batched writes with merge semantics, the
SERVER_TIMESTAMP sentinel and ``on_snapshot`` collection listeners.
"""

import copy
import json
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from google.cloud.firestore import SERVER_TIMESTAMP

from app.utils.exceptions import BatchLimitExceededError
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Firestore's per-batch write limit
DEFAULT_MAX_BATCH_OPERATIONS = 500


class ChangeType(Enum):
    """Mimics google.cloud.firestore_v1.watch.ChangeType."""
    ADDED = 1
    REMOVED = 2
    MODIFIED = 3


def _resolve_server_timestamps(value: Any, now: datetime) -> Any:
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, dict):
        return {k: _resolve_server_timestamps(v, now) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_server_timestamps(v, now) for v in value]
    return value


def _deep_merge(target: dict, updates: dict) -> None:
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value


def _set_field_path(target: dict, path: str, source: dict) -> None:
    """Copy one dotted field path from source into target, replacing it whole."""
    parts = path.split(".")
    value: Any = source
    for part in parts:
        value = value[part]
    node = target
    for part in parts[:-1]:
        if not isinstance(node.get(part), dict):
            node[part] = {}
        node = node[part]
    node[parts[-1]] = value


class LocalStore:
    """In-memory store with the Firestore async client surface."""

    def __init__(
        self,
        seed_path: Optional[Union[str, Path]] = None,
        max_batch_operations: int = DEFAULT_MAX_BATCH_OPERATIONS,
    ):
        self.collections: Dict[str, Dict[str, dict]] = {}
        self.max_batch_operations = max_batch_operations
        # Operation count of every committed batch, in commit order
        self.commits: List[int] = []
        self._listeners: Dict[str, List[Callable]] = {}
        self._lock = threading.Lock()

        if seed_path:
            self.load_seed(seed_path)

    def load_seed(self, seed_path: Union[str, Path]) -> int:
        """
        Load documents from a JSON file shaped ``{collection: {doc_id: data}}``.

        Returns:
            Number of documents loaded
        """
        path = Path(seed_path)
        if not path.exists():
            logger.warning(f"Seed file not found: {path}")
            return 0

        with open(path) as f:
            seed = json.load(f)

        count = 0
        with self._lock:
            for coll_name, docs in seed.items():
                self.collections.setdefault(coll_name, {}).update(
                    {doc_id: dict(data) for doc_id, data in docs.items()}
                )
                count += len(docs)
        logger.info(f"Loaded {count} seed documents from {path}")
        return count

    def collection(self, name: str) -> "CollectionRef":
        self.collections.setdefault(name, {})
        return CollectionRef(self, name)

    def batch(self) -> "WriteBatch":
        return WriteBatch(self)

    # ── Write application (callers hold no lock) ──────────────────────

    def _apply(self, operations: List[Tuple[str, "DocumentRef", Optional[dict], Any]]) -> None:
        now = datetime.now(timezone.utc)
        notifications: List[Tuple[str, "DocumentChange"]] = []

        with self._lock:
            for op, ref, data, merge in operations:
                docs = self.collections.setdefault(ref.collection_name, {})
                existed = ref.id in docs

                if op == "delete":
                    old = docs.pop(ref.id, None)
                    if old is not None:
                        snapshot = DocumentSnapshot(ref, copy.deepcopy(old))
                        notifications.append((ref.collection_name, DocumentChange(ChangeType.REMOVED, snapshot)))
                    continue

                # Resolve first: deepcopy would clone the sentinel
                data = copy.deepcopy(_resolve_server_timestamps(data, now))
                if merge and existed:
                    current = docs[ref.id]
                    if merge is True:
                        _deep_merge(current, data)
                    else:
                        for field_path in merge:
                            _set_field_path(current, field_path, data)
                else:
                    docs[ref.id] = data

                snapshot = DocumentSnapshot(ref, copy.deepcopy(docs[ref.id]))
                change_type = ChangeType.MODIFIED if existed else ChangeType.ADDED
                notifications.append((ref.collection_name, DocumentChange(change_type, snapshot)))

        for coll_name, change in notifications:
            self._notify(coll_name, [change], now)

    def _snapshots(self, coll_name: str) -> List["DocumentSnapshot"]:
        with self._lock:
            docs = list(self.collections.get(coll_name, {}).items())
        return [
            DocumentSnapshot(DocumentRef(self, coll_name, doc_id), copy.deepcopy(data))
            for doc_id, data in docs
        ]

    def _notify(self, coll_name: str, changes: List["DocumentChange"], read_time: datetime) -> None:
        listeners = list(self._listeners.get(coll_name, []))
        if not listeners:
            return
        docs = self._snapshots(coll_name)
        for callback in listeners:
            callback(docs, changes, read_time)

    def _subscribe(self, coll_name: str, callback: Callable) -> "Watch":
        self._listeners.setdefault(coll_name, []).append(callback)
        docs = self._snapshots(coll_name)
        callback(docs, [DocumentChange(ChangeType.ADDED, doc) for doc in docs], datetime.now(timezone.utc))
        return Watch(self, coll_name, callback)


class Watch:
    """Handle returned by on_snapshot."""

    def __init__(self, store: LocalStore, coll_name: str, callback: Callable):
        self._store = store
        self._coll_name = coll_name
        self._callback = callback

    def unsubscribe(self) -> None:
        listeners = self._store._listeners.get(self._coll_name, [])
        if self._callback in listeners:
            listeners.remove(self._callback)


class CollectionRef:
    """Mimics Firestore collection reference and query."""

    def __init__(self, store: LocalStore, name: str):
        self._store = store
        self._name = name
        self._filters: List[Tuple[str, str, Any]] = []
        self._limit_val: Optional[int] = None

    @property
    def id(self) -> str:
        return self._name

    def document(self, doc_id: str) -> "DocumentRef":
        return DocumentRef(self._store, self._name, doc_id)

    def _copy(self) -> "CollectionRef":
        new_ref = CollectionRef(self._store, self._name)
        new_ref._filters = list(self._filters)
        new_ref._limit_val = self._limit_val
        return new_ref

    def where(self, field: str, op: str, value: Any) -> "CollectionRef":
        new_ref = self._copy()
        new_ref._filters.append((field, op, value))
        return new_ref

    def limit(self, count: int) -> "CollectionRef":
        new_ref = self._copy()
        new_ref._limit_val = count
        return new_ref

    async def get(self) -> List["DocumentSnapshot"]:
        results = self._store._snapshots(self._name)

        for field, op, value in self._filters:
            results = [doc for doc in results if _matches(doc.get(field), op, value)]

        if self._limit_val is not None:
            results = results[: self._limit_val]

        return results

    def on_snapshot(self, callback: Callable) -> Watch:
        return self._store._subscribe(self._name, callback)


def _matches(doc_val: Any, op: str, value: Any) -> bool:
    if op == "==":
        return doc_val == value
    raise ValueError(f"Unsupported operator: {op}")


class DocumentRef:
    """Mimics Firestore document reference."""

    def __init__(self, store: LocalStore, collection_name: str, doc_id: str):
        self._store = store
        self.collection_name = collection_name
        self._id = doc_id

    @property
    def id(self) -> str:
        return self._id

    @property
    def path(self) -> str:
        return f"{self.collection_name}/{self._id}"

    async def get(self) -> "DocumentSnapshot":
        with self._store._lock:
            data = self._store.collections.get(self.collection_name, {}).get(self._id)
            data = copy.deepcopy(data)
        return DocumentSnapshot(self, data)

    async def set(self, data: dict, merge: Union[bool, List[str]] = False) -> None:
        self._store._apply([("set", self, data, merge)])

    async def delete(self) -> None:
        self._store._apply([("delete", self, None, False)])


class DocumentSnapshot:
    """Mimics Firestore document snapshot."""

    def __init__(self, reference: DocumentRef, data: Optional[dict]):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[dict]:
        return copy.deepcopy(self._data)

    def get(self, field: str, default=None):
        if self._data is None:
            return default
        return self._data.get(field, default)


class DocumentChange:
    """Mimics google.cloud.firestore_v1.watch.DocumentChange."""

    def __init__(self, change_type: ChangeType, document: DocumentSnapshot):
        self.type = change_type
        self.document = document


class WriteBatch:
    """Mimics Firestore write batch: all operations apply together on commit."""

    def __init__(self, store: LocalStore):
        self._store = store
        self._operations: List[Tuple[str, DocumentRef, Optional[dict], Any]] = []
        self.committed = False

    def __len__(self) -> int:
        return len(self._operations)

    def set(self, reference: DocumentRef, document_data: dict, merge: Union[bool, List[str]] = False) -> None:
        self._operations.append(("set", reference, document_data, merge))

    def delete(self, reference: DocumentRef) -> None:
        self._operations.append(("delete", reference, None, False))

    async def commit(self) -> List[datetime]:
        if self.committed:
            raise ValueError("Batch has already been committed")
        if len(self._operations) > self._store.max_batch_operations:
            raise BatchLimitExceededError(
                details={
                    "operations": len(self._operations),
                    "limit": self._store.max_batch_operations,
                }
            )

        self._store._apply(self._operations)
        self._store.commits.append(len(self._operations))
        self.committed = True
        now = datetime.now(timezone.utc)
        return [now for _ in self._operations]
