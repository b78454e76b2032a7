"""Identifiers and chunk layout arithmetic for bucket storage.

File ids are opaque to the bucket: callers may supply any hashable value
that the collection can store as ``_id``. When none is supplied a random
UUID hex string is generated. Chunk ids are always generated and carry no
meaning beyond uniqueness.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Iterator, TypeAlias

from gridstore.domain.errors import GridFSError

FileId: TypeAlias = Any
"""Opaque identifier of a stored file, primary key of the files collection."""

DEFAULT_BUCKET_NAME = "fs"
DEFAULT_CHUNK_SIZE = 255 * 1024  # 261120 bytes


def new_file_id() -> str:
    """Generate a fresh file identifier."""
    return uuid.uuid4().hex


def new_chunk_id() -> str:
    """Generate a fresh chunk identifier."""
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class ChunkLayout:
    """How a file of ``length`` bytes is split into ``chunk_size`` chunks.

    The chunk count is ``ceil(length / chunk_size)``. A length that is an
    exact multiple of the chunk size ends with a full-size chunk, never with
    an extra empty one.

    Example:
        >>> layout = ChunkLayout(length=9, chunk_size=4)
        >>> layout.chunk_count, layout.last_index, layout.expected_size(2)
        (3, 2, 1)
        >>> ChunkLayout(length=8, chunk_size=4).last_index
        1
    """

    length: int
    chunk_size: int

    def __post_init__(self) -> None:
        """Validate the layout."""
        if self.length < 0:
            raise GridFSError.invalid_argument(
                f"length must be non-negative, got {self.length}"
            )
        if self.chunk_size <= 0:
            raise GridFSError.invalid_argument(
                f"chunk_size must be positive, got {self.chunk_size}"
            )

    @property
    def chunk_count(self) -> int:
        return -(-self.length // self.chunk_size)

    @property
    def last_index(self) -> int:
        """Index of the final chunk, or -1 for an empty file."""
        return self.chunk_count - 1

    @property
    def final_chunk_size(self) -> int:
        if self.length == 0:
            return 0
        return self.length - self.last_index * self.chunk_size

    def expected_size(self, n: int) -> int:
        """Return the exact byte length chunk ``n`` must have.

        Raises:
            GridFSError: If ``n`` is outside ``0..last_index``.
        """
        if not 0 <= n <= self.last_index:
            raise GridFSError.invalid_argument(
                f"chunk index {n} outside 0..{self.last_index}"
            )
        if n == self.last_index:
            return self.final_chunk_size
        return self.chunk_size

    def indices(self) -> Iterator[int]:
        return iter(range(self.chunk_count))
