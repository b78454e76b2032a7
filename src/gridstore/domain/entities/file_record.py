"""File record entity for bucket storage."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from gridstore.domain.value_objects import ChunkLayout, FileId


@dataclass(frozen=True)
class FileRecord:
    """Metadata describing one stored object.

    A file record exists only once every chunk of its upload has been
    written, so its presence is the durable signal that the file is complete.
    """

    id: FileId
    filename: Optional[str]
    length: int
    chunk_size: int
    upload_time: datetime
    metadata: Optional[dict[str, Any]] = None
    content_type: Optional[str] = None
    aliases: Optional[list[str]] = None
    md5: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def layout(self) -> ChunkLayout:
        """Chunk layout implied by this record's length and chunk size."""
        return ChunkLayout(length=self.length, chunk_size=self.chunk_size)

    @property
    def is_empty(self) -> bool:
        return self.length == 0
