"""Collection port for document storage.

This outbound port defines the contract the bucket needs from a document
database: a named collection of documents keyed by ``_id`` that supports
insert, delete by filter, sorted/filtered lazy find, drop and index
creation. Query execution, cursors, connection management and read/write
policy resolution all live behind this interface.

The bucket never retries a failed call. Whatever the implementation raises
(network errors, timeouts, duplicate keys) reaches the caller unchanged.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Protocol, Sequence

Document = dict[str, Any]
"""A collection document."""

Filter = Mapping[str, Any]
"""Query filter: field name to value or operator document."""

SortSpec = Sequence[tuple[str, int]]
"""Sort keys as ``(field, 1 | -1)`` pairs, applied in order."""

IndexKeys = Sequence[tuple[str, int]]
"""Index keys as ``(field, 1 | -1)`` pairs."""

ASCENDING = 1
DESCENDING = -1


@dataclass(frozen=True)
class CollectionOptions:
    """Read/write policy objects handed through to a collection unchanged.

    The bucket does not interpret any of these; it only guarantees that its
    files and chunks collections receive the same values.

    Attributes:
        read_preference: Implementation-defined read preference.
        read_concern: Implementation-defined read concern.
        write_concern: Implementation-defined write concern.
        max_time_ms: Per-operation server time limit in milliseconds.
    """

    read_preference: Any = None
    read_concern: Any = None
    write_concern: Any = None
    max_time_ms: Optional[int] = None


class DuplicateKeyError(Exception):
    """Raised by a collection when an insert violates a unique key."""

    pass


class Collection(Protocol):
    """Protocol for a named document collection.

    Thread Safety:
        Implementations must provide per-document atomicity. No
        cross-document transaction guarantee is required.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Full collection name, e.g. ``fs.chunks``."""
        ...

    @abstractmethod
    def insert_one(self, document: Document) -> Any:
        """Insert a document.

        Args:
            document: The document; must contain ``_id``.

        Returns:
            The inserted document's ``_id``.

        Raises:
            DuplicateKeyError: If ``_id`` or a unique index key collides.
        """
        ...

    @abstractmethod
    def delete_one(self, filter: Filter) -> int:
        """Delete the first document matching ``filter``.

        Returns:
            Number of documents deleted (0 or 1).
        """
        ...

    @abstractmethod
    def delete_many(self, filter: Filter) -> int:
        """Delete every document matching ``filter``.

        Returns:
            Number of documents deleted.
        """
        ...

    @abstractmethod
    def find(
        self,
        filter: Optional[Filter] = None,
        sort: Optional[SortSpec] = None,
        limit: int = 0,
        skip: int = 0,
    ) -> Iterator[Document]:
        """Query documents.

        Args:
            filter: Query filter; ``None`` matches everything.
            sort: Sequence of (field, direction) pairs.
            limit: Maximum number of results; 0 means no limit.
            skip: Number of leading results to skip.

        Returns:
            A lazy iterator over matching documents.
        """
        ...

    @abstractmethod
    def find_one(self, filter: Optional[Filter] = None) -> Optional[Document]:
        """Return the first document matching ``filter``, or None."""
        ...

    @abstractmethod
    def drop(self) -> None:
        """Remove the collection, its documents and its indexes."""
        ...

    @abstractmethod
    def create_index(self, keys: IndexKeys, unique: bool = False) -> str:
        """Create an index if it does not already exist.

        Returns:
            The index name.
        """
        ...


class Database(Protocol):
    """Protocol for a database that hands out named collections."""

    @abstractmethod
    def get_collection(
        self, name: str, options: Optional[CollectionOptions] = None
    ) -> Collection:
        """Return the collection called ``name`` configured with ``options``."""
        ...
