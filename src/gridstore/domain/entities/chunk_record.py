"""Chunk record entity for bucket storage."""

from __future__ import annotations

from dataclasses import dataclass

from gridstore.domain.value_objects import FileId


@dataclass(frozen=True)
class ChunkRecord:
    """One binary segment of a stored file."""

    id: str
    files_id: FileId
    n: int
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)
