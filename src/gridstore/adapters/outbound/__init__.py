"""Outbound adapters: concrete collections and byte sinks."""

from gridstore.adapters.outbound.file_sink import BufferSink, FileObjectSink
from gridstore.adapters.outbound.memory_collection import (
    InMemoryCollection,
    InMemoryDatabase,
)

__all__ = [
    "BufferSink",
    "FileObjectSink",
    "InMemoryCollection",
    "InMemoryDatabase",
]
