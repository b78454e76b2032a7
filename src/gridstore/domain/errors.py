"""Error type for bucket storage operations.

All failures raised by the bucket layer are a single exception type,
:class:`GridFSError`, tagged with an :class:`ErrorKind`. The set of kinds
is closed; callers dispatch on ``error.kind`` rather than on subclasses.

Failures reported by the underlying collection (I/O errors, duplicate keys)
are never wrapped and propagate unchanged.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of bucket failure kinds."""

    FILE_NOT_FOUND = "FileNotFound"
    MISSING_CHUNK = "ChunkIsMissing"
    UNEXPECTED_CHUNK_INDEX = "UnexpectedChunkIndex"
    CHUNK_SIZE_MISMATCH = "ChunkIsWrongSize"
    EXTRA_CHUNKS = "ExtraChunks"
    INVALID_ARGUMENT = "InvalidArgument"

    @property
    def is_integrity_error(self) -> bool:
        """True for kinds that report a structurally inconsistent file."""
        return self in _INTEGRITY_KINDS


_INTEGRITY_KINDS = frozenset(
    {
        ErrorKind.MISSING_CHUNK,
        ErrorKind.UNEXPECTED_CHUNK_INDEX,
        ErrorKind.CHUNK_SIZE_MISMATCH,
        ErrorKind.EXTRA_CHUNKS,
    }
)


class GridFSError(Exception):
    """Raised when a bucket operation fails.

    Attributes:
        kind: The failure variant.
        file_id: The file the failure refers to, if any.
        n: The chunk index the failure refers to, if any.
        expected: Expected value (chunk index or byte length), if any.
        actual: Observed value (chunk index or byte length), if any.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        file_id: Any = None,
        n: int | None = None,
        expected: int | None = None,
        actual: int | None = None,
    ) -> None:
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind
        self.file_id = file_id
        self.n = n
        self.expected = expected
        self.actual = actual

    @classmethod
    def file_not_found(cls, file_id: Any) -> GridFSError:
        return cls(
            ErrorKind.FILE_NOT_FOUND,
            f"no file found for id {file_id!r}",
            file_id=file_id,
        )

    @classmethod
    def missing_chunk(
        cls, file_id: Any, n: int, actual: int | None = None
    ) -> GridFSError:
        """Chunk ``n`` is absent; ``actual`` is the index found in its place."""
        message = f"missing chunk {n} for file with id {file_id!r}"
        if actual is not None:
            message += f" (next chunk found is {actual})"
        return cls(
            ErrorKind.MISSING_CHUNK,
            message,
            file_id=file_id,
            n=n,
            expected=n,
            actual=actual,
        )

    @classmethod
    def unexpected_chunk_index(
        cls, file_id: Any, expected: int, actual: int
    ) -> GridFSError:
        return cls(
            ErrorKind.UNEXPECTED_CHUNK_INDEX,
            f"expected chunk {expected} but got chunk {actual} "
            f"for file with id {file_id!r}",
            file_id=file_id,
            n=expected,
            expected=expected,
            actual=actual,
        )

    @classmethod
    def chunk_size_mismatch(
        cls, file_id: Any, n: int, expected: int, actual: int
    ) -> GridFSError:
        return cls(
            ErrorKind.CHUNK_SIZE_MISMATCH,
            f"chunk {n} from file with id {file_id!r} has incorrect size "
            f"{actual}, expected {expected}",
            file_id=file_id,
            n=n,
            expected=expected,
            actual=actual,
        )

    @classmethod
    def extra_chunks(cls, file_id: Any, last_index: int, actual: int) -> GridFSError:
        return cls(
            ErrorKind.EXTRA_CHUNKS,
            f"found chunk {actual} past the last chunk {last_index} "
            f"for file with id {file_id!r}",
            file_id=file_id,
            n=actual,
            expected=last_index,
            actual=actual,
        )

    @classmethod
    def invalid_argument(cls, message: str, file_id: Any = None) -> GridFSError:
        return cls(ErrorKind.INVALID_ARGUMENT, message, file_id=file_id)


__all__ = ["ErrorKind", "GridFSError"]
