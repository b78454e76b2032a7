"""Download stream: validated, lazy reassembly of a stored file.

Chunks are fetched for the file sorted by ``n`` and checked one at a time
against the layout implied by the file record:

1. A zero-length file yields nothing and never queries chunks.
2. Each index ``0..last_index`` must be present, in order, with exactly the
   expected byte length (``chunk_size`` for all but the last chunk).
3. No chunk may follow ``last_index``.

The first failure ends the stream. Bytes already returned are not
retracted, and every later read raises the same error again; re-open the
stream to retry. Reading a stream after :meth:`DownloadStream.close` raises
``ValueError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, Optional

from gridstore.domain.entities import FileRecord
from gridstore.domain.errors import GridFSError
from gridstore.ports.outbound import ASCENDING, ByteSink

if TYPE_CHECKING:
    from gridstore.application.bucket import Bucket


class DownloadStream:
    """Read side of a bucket download.

    Iterating yields one ``bytes`` object per chunk. The file-like
    ``read``/``readline`` methods draw from the same underlying sequence, so
    the two styles can be mixed; each byte is returned exactly once.
    """

    def __init__(self, bucket: Bucket, file: FileRecord) -> None:
        self._bucket = bucket
        self._file = file
        self._chunks = self._validated_chunks()
        self._pending = b""
        self._position = 0
        self._closed = False
        self._error: Optional[Exception] = None
        self._log = bucket.logger.bind(file_id=str(file.id))

    @property
    def file(self) -> FileRecord:
        """The file record this stream was opened for."""
        return self._file

    @property
    def length(self) -> int:
        return self._file.length

    @property
    def position(self) -> int:
        """Bytes returned to the caller so far."""
        return self._position

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def error(self) -> Optional[Exception]:
        """The failure that ended the stream, if any."""
        return self._error

    def __iter__(self) -> DownloadStream:
        return self

    def __next__(self) -> bytes:
        self._check_readable()
        if self._pending:
            data, self._pending = self._pending, b""
        else:
            data = self._next_chunk()
            if data is None:
                raise StopIteration
        self._position += len(data)
        return data

    def readchunk(self) -> bytes:
        """Return the next chunk's bytes, or ``b""`` at end of file."""
        return next(self, b"")

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes; a negative size reads to end of file."""
        self._check_readable()
        if size == 0:
            return b""
        parts = [self._pending]
        available = len(self._pending)
        self._pending = b""
        while size < 0 or available < size:
            data = self._next_chunk()
            if data is None:
                break
            parts.append(data)
            available += len(data)

        buffer = b"".join(parts)
        if size >= 0 and len(buffer) > size:
            buffer, self._pending = buffer[:size], buffer[size:]
        self._position += len(buffer)
        return buffer

    def readline(self, size: int = -1) -> bytes:
        """Read through the next ``\\n`` (inclusive) or to end of file."""
        self._check_readable()
        parts = []
        collected = 0
        while size < 0 or collected < size:
            if not self._pending:
                data = self._next_chunk()
                if data is None:
                    break
                self._pending = data
            limit = len(self._pending) if size < 0 else min(len(self._pending), size - collected)
            newline = self._pending.find(b"\n", 0, limit)
            end = newline + 1 if newline >= 0 else limit
            parts.append(self._pending[:end])
            self._pending = self._pending[end:]
            collected += end
            if newline >= 0:
                break
        line = b"".join(parts)
        self._position += len(line)
        return line

    def stream_to(self, sink: ByteSink) -> int:
        """Write every remaining byte range to ``sink``.

        Returns:
            Number of bytes written to the sink.
        """
        written = 0
        for data in self:
            sink.write(data)
            written += len(data)
        return written

    def close(self) -> None:
        """Stop reading; the underlying chunk query is released."""
        self._chunks.close()
        self._pending = b""
        self._closed = True

    def __enter__(self) -> DownloadStream:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def _check_readable(self) -> None:
        if self._error is not None:
            raise self._error
        if self._closed:
            raise ValueError("I/O operation on closed stream")

    def _next_chunk(self) -> Optional[bytes]:
        """Next validated chunk, or None at end of file.

        Any exception ends the stream and is kept so later reads re-raise it.
        """
        try:
            return next(self._chunks, None)
        except Exception as exc:
            self._error = exc
            self._pending = b""
            self._closed = True
            self._record_failure(exc)
            raise

    def _record_failure(self, exc: Exception) -> None:
        bucket = self._bucket
        if isinstance(exc, GridFSError) and exc.kind.is_integrity_error:
            bucket.metrics.integrity_errors_total.labels(
                bucket=bucket.name, error_type=exc.kind.value
            ).inc()
            self._log.warning(
                "chunk_validation_failed",
                error_type=exc.kind.value,
                n=exc.n,
                expected=exc.expected,
                actual=exc.actual,
            )
        else:
            self._log.error(
                "download_failed",
                error_type=type(exc).__name__,
                error=str(exc),
                position=self._position,
            )

    def _validated_chunks(self) -> Iterator[bytes]:
        record = self._file
        if record.is_empty:
            return

        bucket = self._bucket
        codec = bucket.codec
        layout = record.layout
        cursor = bucket.chunks.find({"files_id": record.id}, sort=[("n", ASCENDING)])

        for expected_n in layout.indices():
            document = next(cursor, None)
            if document is None:
                raise GridFSError.missing_chunk(record.id, expected_n)

            chunk = codec.decode_chunk(document)
            if chunk.n > expected_n:
                # Gap in the index sequence.
                raise GridFSError.missing_chunk(record.id, expected_n, chunk.n)
            if chunk.n != expected_n:
                raise GridFSError.unexpected_chunk_index(record.id, expected_n, chunk.n)

            expected_size = layout.expected_size(expected_n)
            if chunk.size != expected_size:
                raise GridFSError.chunk_size_mismatch(
                    record.id, expected_n, expected_size, chunk.size
                )

            bucket.metrics.chunks_read_total.labels(bucket=bucket.name).inc()
            bucket.metrics.bytes_downloaded_total.labels(bucket=bucket.name).inc(chunk.size)
            yield chunk.data

        extra = next(cursor, None)
        if extra is not None:
            raise GridFSError.extra_chunks(
                record.id, layout.last_index, codec.decode_chunk(extra).n
            )

        self._log.info("file_downloaded", length=record.length, chunks=layout.chunk_count)

    def __repr__(self) -> str:
        return (
            f"DownloadStream(id={self._file.id!r}, length={self._file.length}, "
            f"position={self._position})"
        )
