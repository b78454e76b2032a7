"""Upload stream: buffers bytes into chunks and commits a file record.

The stream moves through ``OPEN -> WRITING -> CLOSED``. Every time the
buffer holds a full chunk, that chunk is inserted immediately with the next
index. ``close`` writes the short final chunk (if any) and then inserts the
file record, which is what makes the file visible.

A stream that fails or is abandoned before ``close`` ends ``ABORTED``. No
file record is written for it and the chunks it already inserted stay in
place; only an explicit :meth:`UploadStream.abort` removes them.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Optional

from gridstore.domain.entities import FileRecord
from gridstore.domain.errors import GridFSError
from gridstore.domain.value_objects import FileId, new_file_id

if TYPE_CHECKING:
    from gridstore.application.bucket import Bucket


class UploadState(str, Enum):
    """Upload stream lifecycle states."""

    OPEN = "open"
    WRITING = "writing"
    CLOSED = "closed"
    ABORTED = "aborted"


class UploadStream:
    """Write side of a bucket upload.

    Example:
        with bucket.open_upload_stream("report.csv") as stream:
            stream.write(b"a,b\\n")
            stream.write(b"1,2\\n")
        file_id = stream.id
    """

    def __init__(
        self,
        bucket: Bucket,
        filename: Optional[str],
        chunk_size_bytes: int,
        file_id: Optional[FileId] = None,
        metadata: Optional[dict[str, Any]] = None,
        content_type: Optional[str] = None,
        aliases: Optional[list[str]] = None,
    ) -> None:
        if chunk_size_bytes <= 0:
            raise GridFSError.invalid_argument(
                f"chunk_size_bytes must be positive, got {chunk_size_bytes}"
            )
        self._bucket = bucket
        self._filename = filename
        self._chunk_size = chunk_size_bytes
        self._id = file_id if file_id is not None else new_file_id()
        self._metadata = metadata
        self._content_type = content_type
        self._aliases = list(aliases) if aliases else None

        self._buffer = bytearray()
        self._length = 0
        self._next_n = 0
        self._md5 = hashlib.md5() if bucket.codec.options.compute_md5 else None
        self._state = UploadState.OPEN
        self._file: FileRecord | None = None
        self._log = bucket.logger.bind(file_id=str(self._id))

    @property
    def id(self) -> FileId:
        return self._id

    @property
    def filename(self) -> Optional[str]:
        return self._filename

    @property
    def chunk_size_bytes(self) -> int:
        return self._chunk_size

    @property
    def length(self) -> int:
        """Bytes accepted so far."""
        return self._length

    @property
    def chunks_written(self) -> int:
        return self._next_n

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state in (UploadState.CLOSED, UploadState.ABORTED)

    @property
    def file(self) -> FileRecord | None:
        """The committed file record, once closed."""
        return self._file

    def write(self, data: bytes) -> int:
        """Append ``data`` to the file, inserting every chunk it completes.

        Returns:
            Number of bytes accepted.

        Raises:
            GridFSError: INVALID_ARGUMENT if the stream is closed or aborted,
                or ``data`` is not bytes-like.
        """
        if self.closed:
            raise GridFSError.invalid_argument(
                f"cannot write to a {self._state.value} upload stream", file_id=self._id
            )
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise GridFSError.invalid_argument(
                f"can only write bytes-like data, not {type(data).__name__}",
                file_id=self._id,
            )

        self._state = UploadState.WRITING
        self._buffer += data
        self._length += len(data)
        if self._md5 is not None:
            self._md5.update(data)

        while len(self._buffer) >= self._chunk_size:
            self._insert_chunk(bytes(self._buffer[: self._chunk_size]))
            del self._buffer[: self._chunk_size]
        return len(data)

    def writelines(self, lines: Iterable[bytes]) -> None:
        for line in lines:
            self.write(line)

    def close(self) -> FileRecord:
        """Flush the final chunk and commit the file record.

        Closing an already closed stream returns the same record.

        Raises:
            GridFSError: INVALID_ARGUMENT if the stream was aborted.
        """
        if self._file is not None:
            return self._file
        if self._state is UploadState.ABORTED:
            raise GridFSError.invalid_argument(
                "cannot close an aborted upload stream", file_id=self._id
            )

        bucket = self._bucket
        with bucket.tracer.start_as_current_span(
            "gridstore.upload",
            attributes={
                "gridstore.bucket": bucket.name,
                "gridstore.file_id": str(self._id),
            },
        ) as span, bucket.metrics.operation_latency_seconds.labels(
            bucket=bucket.name, operation="upload_close"
        ).time():
            if self._buffer:
                self._insert_chunk(bytes(self._buffer))
                self._buffer.clear()

            upload_time = datetime.now(timezone.utc)
            if not bucket.codec.options.tz_aware:
                upload_time = upload_time.replace(tzinfo=None)

            record = FileRecord(
                id=self._id,
                filename=self._filename,
                length=self._length,
                chunk_size=self._chunk_size,
                upload_time=upload_time,
                metadata=self._metadata,
                content_type=self._content_type,
                aliases=self._aliases,
                md5=self._md5.hexdigest() if self._md5 is not None else None,
            )
            try:
                bucket.files.insert_one(bucket.codec.encode_file(record))
            except Exception:
                self._fail("file_record_insert_failed")
                raise
            span.set_attribute("gridstore.length", self._length)
            span.set_attribute("gridstore.chunks", self._next_n)

        self._file = record
        self._state = UploadState.CLOSED
        bucket.metrics.files_uploaded_total.labels(bucket=bucket.name).inc()
        self._log.info(
            "file_uploaded",
            filename=self._filename,
            length=self._length,
            chunk_size=self._chunk_size,
            chunks=self._next_n,
        )
        return record

    def abort(self) -> int:
        """Cancel the upload and delete the chunks written so far.

        Returns:
            Number of chunk documents removed.

        Raises:
            GridFSError: INVALID_ARGUMENT if the stream is already closed.
        """
        if self._state is UploadState.CLOSED:
            raise GridFSError.invalid_argument(
                "cannot abort a closed upload stream", file_id=self._id
            )
        removed = self._bucket.chunks.delete_many({"files_id": self._id})
        if self._state is not UploadState.ABORTED:
            self._state = UploadState.ABORTED
            self._bucket.metrics.upload_aborts_total.labels(bucket=self._bucket.name).inc()
        self._buffer.clear()
        self._log.info("upload_aborted", chunks_removed=removed)
        return removed

    def _insert_chunk(self, data: bytes) -> None:
        bucket = self._bucket
        document = bucket.codec.encode_chunk(self._id, self._next_n, self._chunk_size, data)
        try:
            bucket.chunks.insert_one(document)
        except Exception:
            self._fail("chunk_insert_failed", n=self._next_n)
            raise
        bucket.metrics.chunks_written_total.labels(bucket=bucket.name).inc()
        bucket.metrics.bytes_uploaded_total.labels(bucket=bucket.name).inc(len(data))
        self._log.debug("chunk_written", n=self._next_n, size=len(data))
        self._next_n += 1

    def _fail(self, event: str, **context: Any) -> None:
        """Move to ABORTED after a persistence failure; chunks stay in place."""
        self._state = UploadState.ABORTED
        self._bucket.metrics.upload_aborts_total.labels(bucket=self._bucket.name).inc()
        self._log.warning(event, chunks_written=self._next_n, **context)

    def __enter__(self) -> UploadStream:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if exc_type is None:
            self.close()
        elif not self.closed:
            self._fail("upload_abandoned", error=exc_type.__name__)

    def __repr__(self) -> str:
        return (
            f"UploadStream(id={self._id!r}, filename={self._filename!r}, "
            f"state={self._state.value}, length={self._length})"
        )
