"""Unit tests for the bucket error type."""

from __future__ import annotations

import pytest

from gridstore.domain.errors import ErrorKind, GridFSError


@pytest.mark.unit
class TestGridFSError:
    """Test error variants and their payloads."""

    def test_file_not_found(self) -> None:
        error = GridFSError.file_not_found("abc")

        assert error.kind is ErrorKind.FILE_NOT_FOUND
        assert error.file_id == "abc"
        assert str(error).startswith("FileNotFound:")

    def test_missing_chunk(self) -> None:
        error = GridFSError.missing_chunk("abc", 3)

        assert error.kind is ErrorKind.MISSING_CHUNK
        assert error.n == 3
        assert error.actual is None

    def test_missing_chunk_with_successor(self) -> None:
        error = GridFSError.missing_chunk("abc", 3, actual=5)

        assert error.expected == 3
        assert error.actual == 5
        assert "next chunk found is 5" in str(error)

    def test_unexpected_chunk_index(self) -> None:
        error = GridFSError.unexpected_chunk_index("abc", expected=2, actual=1)

        assert error.kind is ErrorKind.UNEXPECTED_CHUNK_INDEX
        assert (error.expected, error.actual) == (2, 1)

    def test_chunk_size_mismatch(self) -> None:
        error = GridFSError.chunk_size_mismatch("abc", 1, expected=4, actual=3)

        assert error.kind is ErrorKind.CHUNK_SIZE_MISMATCH
        assert error.n == 1
        assert "incorrect size 3, expected 4" in str(error)

    def test_extra_chunks(self) -> None:
        error = GridFSError.extra_chunks("abc", last_index=2, actual=3)

        assert error.kind is ErrorKind.EXTRA_CHUNKS
        assert error.n == 3

    def test_invalid_argument(self) -> None:
        error = GridFSError.invalid_argument("no file id provided")

        assert error.kind is ErrorKind.INVALID_ARGUMENT
        assert error.file_id is None

    def test_integrity_kinds(self) -> None:
        assert ErrorKind.MISSING_CHUNK.is_integrity_error
        assert ErrorKind.EXTRA_CHUNKS.is_integrity_error
        assert not ErrorKind.FILE_NOT_FOUND.is_integrity_error
        assert not ErrorKind.INVALID_ARGUMENT.is_integrity_error

    def test_is_exception(self) -> None:
        with pytest.raises(GridFSError):
            raise GridFSError.file_not_found(1)
