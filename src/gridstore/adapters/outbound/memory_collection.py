"""In-memory document collection.

This adapter implements the Collection and Database protocols with plain
dictionaries. It understands the subset of the query language the bucket
and its callers use:

- equality on top-level or dotted fields
- ``$eq``, ``$ne``, ``$gt``, ``$gte``, ``$lt``, ``$lte``, ``$in``, ``$nin``,
  ``$exists`` operator documents

Documents are deep-copied on the way in and on the way out, so callers can
never mutate stored state through a returned document.

Thread Safety:
    All operations on a collection are serialized by a per-collection
    reentrant lock. ``find`` snapshots matching documents under the lock
    and yields them lazily afterwards.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, Optional

from gridstore.ports.outbound.collection import (
    CollectionOptions,
    Document,
    DuplicateKeyError,
    Filter,
    IndexKeys,
    SortSpec,
)

_MISSING = object()


def _lookup(document: Document, path: str) -> Any:
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(value: Any, operand: Any) -> bool:
        if value is _MISSING:
            return False
        try:
            return op(value, operand)
        except TypeError:
            return False

    return check


_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "$eq": lambda value, operand: value is not _MISSING and value == operand,
    "$ne": lambda value, operand: value is _MISSING or value != operand,
    "$gt": _compare(lambda a, b: a > b),
    "$gte": _compare(lambda a, b: a >= b),
    "$lt": _compare(lambda a, b: a < b),
    "$lte": _compare(lambda a, b: a <= b),
    "$in": lambda value, operand: value is not _MISSING and value in operand,
    "$nin": lambda value, operand: value is _MISSING or value not in operand,
    "$exists": lambda value, operand: (value is not _MISSING) == bool(operand),
}


def matches(document: Document, filter: Optional[Filter]) -> bool:
    """Check whether ``document`` satisfies ``filter``.

    Raises:
        ValueError: If the filter uses an unsupported operator.
    """
    if not filter:
        return True
    for path, condition in filter.items():
        value = _lookup(document, path)
        if isinstance(condition, dict) and condition and all(
            key.startswith("$") for key in condition
        ):
            for op_name, operand in condition.items():
                op = _OPERATORS.get(op_name)
                if op is None:
                    raise ValueError(f"Unsupported query operator {op_name!r}")
                if not op(value, operand):
                    return False
        elif value is _MISSING or value != condition:
            return False
    return True


def _sort_key(path: str) -> Callable[[Document], tuple]:
    def key(document: Document) -> tuple:
        value = _lookup(document, path)
        if value is _MISSING or value is None:
            return (0,)
        return (1, value)

    return key


def index_name(keys: IndexKeys) -> str:
    """Return the conventional name of an index, e.g. ``files_id_1_n_1``."""
    return "_".join(f"{field_name}_{direction}" for field_name, direction in keys)


@dataclass
class _Index:
    keys: tuple[tuple[str, int], ...]
    unique: bool = False

    def key_of(self, document: Document) -> tuple:
        return tuple(_lookup(document, path) for path, _ in self.keys)


@dataclass
class _CollectionData:
    """Shared state of one named collection."""

    documents: Dict[Any, Document] = field(default_factory=dict)
    indexes: Dict[str, _Index] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock)


class InMemoryCollection:
    """Dictionary-backed implementation of the Collection protocol.

    Attributes:
        name: Full collection name.
        options: The policy options this handle was created with.
    """

    def __init__(
        self,
        name: str,
        options: Optional[CollectionOptions] = None,
        data: Optional[_CollectionData] = None,
    ) -> None:
        self._name = name
        self._options = options or CollectionOptions()
        self._data = data if data is not None else _CollectionData()

    @property
    def name(self) -> str:
        return self._name

    @property
    def options(self) -> CollectionOptions:
        return self._options

    def insert_one(self, document: Document) -> Any:
        if "_id" not in document:
            raise ValueError("document must contain an _id field")
        stored = copy.deepcopy(dict(document))
        doc_id = stored["_id"]

        with self._data.lock:
            if doc_id in self._data.documents:
                raise DuplicateKeyError(
                    f"E11000 duplicate key error collection: {self._name} "
                    f"index: _id_ dup key: {doc_id!r}"
                )
            for name, index in self._data.indexes.items():
                if not index.unique:
                    continue
                key = index.key_of(stored)
                for existing in self._data.documents.values():
                    if index.key_of(existing) == key:
                        raise DuplicateKeyError(
                            f"E11000 duplicate key error collection: {self._name} "
                            f"index: {name} dup key: {key!r}"
                        )
            self._data.documents[doc_id] = stored
        return doc_id

    def delete_one(self, filter: Filter) -> int:
        with self._data.lock:
            for doc_id, document in self._data.documents.items():
                if matches(document, filter):
                    del self._data.documents[doc_id]
                    return 1
        return 0

    def delete_many(self, filter: Filter) -> int:
        with self._data.lock:
            doomed = [
                doc_id
                for doc_id, document in self._data.documents.items()
                if matches(document, filter)
            ]
            for doc_id in doomed:
                del self._data.documents[doc_id]
        return len(doomed)

    def find(
        self,
        filter: Optional[Filter] = None,
        sort: Optional[SortSpec] = None,
        limit: int = 0,
        skip: int = 0,
    ) -> Iterator[Document]:
        if limit < 0 or skip < 0:
            raise ValueError("limit and skip must be non-negative")
        with self._data.lock:
            results = [
                document
                for document in self._data.documents.values()
                if matches(document, filter)
            ]
        # Sort by the least significant key first; list.sort is stable.
        for path, direction in reversed(list(sort or ())):
            results.sort(key=_sort_key(path), reverse=direction < 0)
        results = results[skip:]
        if limit:
            results = results[:limit]
        return (copy.deepcopy(document) for document in results)

    def find_one(self, filter: Optional[Filter] = None) -> Optional[Document]:
        return next(self.find(filter, limit=1), None)

    def count_documents(self, filter: Optional[Filter] = None) -> int:
        with self._data.lock:
            return sum(
                1 for document in self._data.documents.values()
                if matches(document, filter)
            )

    def drop(self) -> None:
        with self._data.lock:
            self._data.documents.clear()
            self._data.indexes.clear()

    def create_index(self, keys: IndexKeys, unique: bool = False) -> str:
        name = index_name(keys)
        with self._data.lock:
            if name not in self._data.indexes:
                self._data.indexes[name] = _Index(
                    keys=tuple((path, direction) for path, direction in keys),
                    unique=unique,
                )
        return name

    def index_information(self) -> Dict[str, dict[str, Any]]:
        """Describe existing indexes, keyed by index name."""
        with self._data.lock:
            return {
                name: {"key": list(index.keys), "unique": index.unique}
                for name, index in self._data.indexes.items()
            }


class InMemoryDatabase:
    """Dictionary-backed implementation of the Database protocol.

    Handles returned for the same name share storage, whatever options they
    were created with.
    """

    def __init__(self, name: str = "test") -> None:
        self.name = name
        self._collections: Dict[str, _CollectionData] = {}
        self._lock = threading.Lock()

    def get_collection(
        self, name: str, options: Optional[CollectionOptions] = None
    ) -> InMemoryCollection:
        with self._lock:
            data = self._collections.setdefault(name, _CollectionData())
        return InMemoryCollection(name, options=options, data=data)

    def list_collection_names(self) -> list[str]:
        """Names of collections that currently hold documents or indexes."""
        with self._lock:
            return sorted(
                name
                for name, data in self._collections.items()
                if data.documents or data.indexes
            )
