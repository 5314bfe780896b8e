"""
In-process stand-in for the Firestore client, used when USE_MOCK_DB is set.

Implements the subset of the google-cloud-firestore surface the services use:
collection(), document(), set(), get(), update(), delete(), where(),
order_by(), limit() and stream(). SERVER_TIMESTAMP sentinels are resolved to
the current UTC time on write. When a path is given, every write is flushed
to a JSON file so data survives restarts.
"""

import copy
import json
import logging
import os
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from firebase_admin import firestore

logger = logging.getLogger(__name__)

_DATETIME_KEY = "__datetime__"

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a is not None and a < b,
    "<=": lambda a, b: a is not None and a <= b,
    ">": lambda a, b: a is not None and a > b,
    ">=": lambda a, b: a is not None and a >= b,
    "in": lambda a, b: a in b,
    "not-in": lambda a, b: a not in b,
    "array_contains": lambda a, b: isinstance(a, list) and b in a,
}


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_DATETIME_KEY: value.isoformat()}
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_encode(v) for v in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value.keys()) == {_DATETIME_KEY}:
            return datetime.fromisoformat(value[_DATETIME_KEY])
        return {k: _decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode(v) for v in value]
    return value


def _resolve_sentinels(value: Any, now: datetime) -> Any:
    if value is firestore.SERVER_TIMESTAMP:
        return now
    if isinstance(value, dict):
        return {k: _resolve_sentinels(v, now) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_sentinels(v, now) for v in value]
    return value


def _get_field(data: Dict, field_path: str) -> Tuple[bool, Any]:
    """Resolve a dotted field path. Returns (found, value)."""
    current: Any = data
    for part in field_path.split("."):
        if not isinstance(current, dict) or part not in current:
            return False, None
        current = current[part]
    return True, current


class MockDocumentSnapshot:
    def __init__(self, reference: "MockDocumentReference", data: Optional[Dict]):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict]:
        if self._data is None:
            return None
        return copy.deepcopy(self._data)


class MockDocumentReference:
    def __init__(self, client: "MockFirestore", collection: str, doc_id: str):
        self._client = client
        self._collection = collection
        self.id = doc_id

    @property
    def path(self) -> str:
        return f"{self._collection}/{self.id}"

    def get(self) -> MockDocumentSnapshot:
        return MockDocumentSnapshot(self, self._client._read(self._collection, self.id))

    def set(self, document_data: Dict, merge: bool = False) -> None:
        self._client._write(self._collection, self.id, document_data, merge=merge)

    def update(self, field_updates: Dict) -> None:
        if self._client._read(self._collection, self.id) is None:
            raise KeyError(f"No document to update: {self.path}")
        self._client._write(self._collection, self.id, field_updates, merge=True)

    def delete(self) -> None:
        self._client._remove(self._collection, self.id)


class MockQuery:
    def __init__(
        self,
        client: "MockFirestore",
        collection: str,
        filters: Optional[List[Tuple[str, str, Any]]] = None,
        orders: Optional[List[Tuple[str, str]]] = None,
        limit_count: Optional[int] = None,
    ):
        self._client = client
        self._collection = collection
        self._filters = filters or []
        self._orders = orders or []
        self._limit = limit_count

    def _copy(self, **changes) -> "MockQuery":
        params = {
            "filters": list(self._filters),
            "orders": list(self._orders),
            "limit_count": self._limit,
        }
        params.update(changes)
        return MockQuery(self._client, self._collection, **params)

    def where(self, field_path: str, op_string: str, value: Any) -> "MockQuery":
        if op_string not in _OPERATORS:
            raise ValueError(f"Unsupported operator for mock Firestore: {op_string}")
        return self._copy(filters=self._filters + [(field_path, op_string, value)])

    def order_by(self, field_path: str, direction: str = firestore.Query.ASCENDING) -> "MockQuery":
        return self._copy(orders=self._orders + [(field_path, direction)])

    def limit(self, count: int) -> "MockQuery":
        return self._copy(limit_count=count)

    def stream(self) -> Iterator[MockDocumentSnapshot]:
        rows = self._client._snapshot(self._collection)

        for field_path, op_string, value in self._filters:
            matcher = _OPERATORS[op_string]
            kept = []
            for doc_id, data in rows:
                found, field_value = _get_field(data, field_path)
                if found and matcher(field_value, value):
                    kept.append((doc_id, data))
            rows = kept

        # Firestore drops documents that lack an order_by field
        for field_path, _ in self._orders:
            rows = [row for row in rows if _get_field(row[1], field_path)[0]]
        for field_path, direction in reversed(self._orders):
            rows.sort(
                key=lambda row: _get_field(row[1], field_path)[1],
                reverse=direction == firestore.Query.DESCENDING,
            )

        if self._limit is not None:
            rows = rows[: self._limit]

        for doc_id, data in rows:
            ref = MockDocumentReference(self._client, self._collection, doc_id)
            yield MockDocumentSnapshot(ref, data)

    def get(self) -> List[MockDocumentSnapshot]:
        return list(self.stream())


class MockCollectionReference(MockQuery):
    def __init__(self, client: "MockFirestore", name: str):
        super().__init__(client, name)
        self.id = name

    def document(self, document_id: Optional[str] = None) -> MockDocumentReference:
        return MockDocumentReference(self._client, self._collection, document_id or uuid.uuid4().hex[:20])


class MockFirestore:
    """Thread-safe in-memory document store with optional JSON persistence."""

    def __init__(self, path: Optional[str] = None):
        self._path = path or None
        self._lock = threading.RLock()
        self._data: Dict[str, Dict[str, Dict]] = {}
        if self._path and os.path.exists(self._path):
            with open(self._path, "r", encoding="utf-8") as f:
                self._data = _decode(json.load(f))
            logger.info(f"[MOCK_DB] Loaded {self._path}")

    def collection(self, name: str) -> MockCollectionReference:
        return MockCollectionReference(self, name)

    def collections(self) -> List[MockCollectionReference]:
        with self._lock:
            return [MockCollectionReference(self, name) for name in self._data]

    def _read(self, collection: str, doc_id: str) -> Optional[Dict]:
        with self._lock:
            data = self._data.get(collection, {}).get(doc_id)
            return copy.deepcopy(data) if data is not None else None

    def _snapshot(self, collection: str) -> List[Tuple[str, Dict]]:
        with self._lock:
            return [(doc_id, copy.deepcopy(data)) for doc_id, data in self._data.get(collection, {}).items()]

    def _write(self, collection: str, doc_id: str, values: Dict, merge: bool) -> None:
        resolved = _resolve_sentinels(copy.deepcopy(values), datetime.now(timezone.utc))
        with self._lock:
            docs = self._data.setdefault(collection, {})
            if merge and doc_id in docs:
                docs[doc_id].update(resolved)
            else:
                docs[doc_id] = resolved
            self._flush()

    def _remove(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._data.get(collection, {}).pop(doc_id, None)
            self._flush()

    def _flush(self) -> None:
        if not self._path:
            return
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(_encode(self._data), f, indent=2)


def get_mock_db(path: Optional[str] = None) -> MockFirestore:
    return MockFirestore(path)
