"""Outbound ports - interfaces for external dependencies.

Outbound ports define contracts for the systems the bucket depends on:
the document collections it stores into and the sinks downloads write to.
"""

from gridstore.ports.outbound.byte_sink import ByteSink
from gridstore.ports.outbound.collection import (
    ASCENDING,
    DESCENDING,
    Collection,
    CollectionOptions,
    Database,
    Document,
    DuplicateKeyError,
    Filter,
    IndexKeys,
    SortSpec,
)

__all__ = [
    "ASCENDING",
    "DESCENDING",
    "ByteSink",
    "Collection",
    "CollectionOptions",
    "Database",
    "Document",
    "DuplicateKeyError",
    "Filter",
    "IndexKeys",
    "SortSpec",
]
