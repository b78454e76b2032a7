"""Domain entities."""

from gridstore.domain.entities.chunk_record import ChunkRecord
from gridstore.domain.entities.file_record import FileRecord

__all__ = [
    "ChunkRecord",
    "FileRecord",
]
