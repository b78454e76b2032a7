"""Byte sink port for streamed downloads.

A download can be driven into any object that accepts byte ranges one at a
time. The sink is called once per validated chunk, in index order. Bytes
already handed to a sink are never retracted if a later chunk fails
validation.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol, runtime_checkable


@runtime_checkable
class ByteSink(Protocol):
    """Protocol for a consumer of byte ranges."""

    @abstractmethod
    def write(self, data: bytes) -> object:
        """Accept the next byte range.

        Args:
            data: The next contiguous slice of the file.
        """
        ...
