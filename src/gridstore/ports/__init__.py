"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are abstract interfaces (protocols) that define contracts:
- Outbound ports: Dependencies on external systems (Collection, Database,
  ByteSink)

Adapters implement these ports with concrete functionality.
"""

from gridstore.ports.outbound import (
    ByteSink,
    Collection,
    CollectionOptions,
    Database,
    DuplicateKeyError,
)

__all__ = [
    "ByteSink",
    "Collection",
    "CollectionOptions",
    "Database",
    "DuplicateKeyError",
]
