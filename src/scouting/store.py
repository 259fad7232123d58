# src/scouting/store.py
"""
Document store used by the scouting services.

Documents are addressed by collection name + key. Besides plain reads and
full replaces, the services rely on two primitives that must be atomic for a
single document:

- merge: set only the given nested paths, creating the document if needed.
- compare_and_set: replace the document only if selected fields still hold
  the values the caller last saw (or insert only if it does not exist yet).

MongoStore backs these with pymongo; MemoryStore is the in-process version
used for tests and local runs.
"""
import copy
import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from pymongo.errors import DuplicateKeyError, PyMongoError

from .errors import StoreError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
Path = Tuple[str, ...]


def check_path_segment(segment: str) -> None:
    """Raises ValueError for keys that can't be used as a nested field name."""
    if not segment or "." in segment or segment.startswith("$"):
        raise ValueError(f"Invalid document path segment: {segment!r}")


class DocumentStore:
    """Interface shared by the store backends."""

    def get(self, collection: str, key: str) -> Optional[Document]:
        raise NotImplementedError

    def exists(self, collection: str, key: str) -> bool:
        return self.get(collection, key) is not None

    def set(self, collection: str, key: str, document: Document) -> None:
        raise NotImplementedError

    def merge(self, collection: str, key: str, updates: Mapping[Path, Any]) -> None:
        raise NotImplementedError

    def compare_and_set(self, collection: str, key: str,
                        expected: Optional[Mapping[str, Any]], document: Document) -> bool:
        """
        Replace `key` with `document` if every field in `expected` still has
        that value (a missing field counts as None). With expected=None the
        write only happens when the document does not exist yet.
        Returns whether the write happened.
        """
        raise NotImplementedError

    def stream(self, collection: str) -> List[Tuple[str, Document]]:
        raise NotImplementedError

    def find(self, collection: str, filters: Mapping[str, Any]) -> List[Tuple[str, Document]]:
        return [
            (key, doc) for key, doc in self.stream(collection)
            if all(doc.get(field) == value for field, value in filters.items())
        ]


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as e:
        logger.error(f"MongoDB {action} failed: {e}")
        raise StoreError(f"Document store {action} failed") from e


class MongoStore(DocumentStore):
    """One collection per scouting category, team/lease key stored as _id."""

    def __init__(self, db):
        self.db = db

    def get(self, collection, key):
        with _store_errors("read"):
            doc = self.db[collection].find_one({"_id": key})
        if doc is not None:
            doc.pop("_id", None)
        return doc

    def exists(self, collection, key):
        with _store_errors("read"):
            return self.db[collection].find_one({"_id": key}, {"_id": 1}) is not None

    def set(self, collection, key, document):
        with _store_errors("write"):
            self.db[collection].replace_one({"_id": key}, dict(document), upsert=True)

    def merge(self, collection, key, updates):
        fields = {}
        for path, value in updates.items():
            for segment in path:
                check_path_segment(segment)
            fields[".".join(path)] = value

        # $set on dotted paths only touches those leaves; siblings survive
        with _store_errors("write"):
            self.db[collection].update_one({"_id": key}, {"$set": fields}, upsert=True)

    def compare_and_set(self, collection, key, expected, document):
        with _store_errors("write"):
            if expected is None:
                try:
                    self.db[collection].insert_one({"_id": key, **document})
                except DuplicateKeyError:
                    return False
                return True

            # {field: None} matches both null and missing fields
            query = {"_id": key, **expected}
            result = self.db[collection].replace_one(query, dict(document))
            return result.matched_count == 1

    def stream(self, collection):
        with _store_errors("read"):
            docs = list(self.db[collection].find())
        return [(doc.pop("_id"), doc) for doc in docs]

    def find(self, collection, filters):
        with _store_errors("read"):
            docs = list(self.db[collection].find(dict(filters)))
        return [(doc.pop("_id"), doc) for doc in docs]


class MemoryStore(DocumentStore):
    """Thread-safe in-process store. Reads return copies."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._lock = threading.RLock()

    def _collection(self, name):
        return self._collections.setdefault(name, {})

    def get(self, collection, key):
        with self._lock:
            doc = self._collection(collection).get(key)
            return copy.deepcopy(doc) if doc is not None else None

    def set(self, collection, key, document):
        with self._lock:
            self._collection(collection)[key] = copy.deepcopy(dict(document))

    def merge(self, collection, key, updates):
        for path in updates:
            for segment in path:
                check_path_segment(segment)

        with self._lock:
            doc = self._collection(collection).setdefault(key, {})
            for path, value in updates.items():
                target = doc
                for segment in path[:-1]:
                    child = target.get(segment)
                    if not isinstance(child, dict):
                        child = target[segment] = {}
                    target = child
                target[path[-1]] = copy.deepcopy(value)

    def compare_and_set(self, collection, key, expected, document):
        with self._lock:
            docs = self._collection(collection)
            current = docs.get(key)
            if expected is None:
                if current is not None:
                    return False
            elif current is None or any(current.get(f) != v for f, v in expected.items()):
                return False
            docs[key] = copy.deepcopy(dict(document))
            return True

    def stream(self, collection):
        with self._lock:
            return [(key, copy.deepcopy(doc)) for key, doc in self._collection(collection).items()]
