"""Value objects for the bucket storage domain.

Exports:
    - FileId: Opaque file identifier alias
    - ChunkLayout: Chunk count and per-index size arithmetic
    - new_file_id, new_chunk_id: Identifier generators
    - DEFAULT_BUCKET_NAME, DEFAULT_CHUNK_SIZE: Bucket defaults
"""

from gridstore.domain.value_objects.identifiers import (
    DEFAULT_BUCKET_NAME,
    DEFAULT_CHUNK_SIZE,
    ChunkLayout,
    FileId,
    new_chunk_id,
    new_file_id,
)

__all__ = [
    "ChunkLayout",
    "DEFAULT_BUCKET_NAME",
    "DEFAULT_CHUNK_SIZE",
    "FileId",
    "new_chunk_id",
    "new_file_id",
]
