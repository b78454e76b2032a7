"""Bucket - chunked binary object storage over two document collections.

A bucket named ``fs`` stores file records in ``fs.files`` and chunk
records in ``fs.chunks``. Uploads write chunks first and the file record
last; deletes remove the file record first and the chunks second. Either
way a partial failure leaves unreferenced chunks behind, never a file
record whose chunks are gone.

Usage:
    from gridstore.adapters.outbound import InMemoryDatabase
    from gridstore.application import Bucket

    bucket = Bucket(InMemoryDatabase(), chunk_size_bytes=4)
    file_id = bucket.upload_from_bytes("letters.txt", b"ABCDEFGHI")
    assert bucket.download_to_bytes(file_id) == b"ABCDEFGHI"
    bucket.delete(file_id)
"""

from __future__ import annotations

from typing import Any, BinaryIO, Iterator, Optional

import structlog
from opentelemetry import trace

from gridstore.adapters.outbound.file_sink import BufferSink
from gridstore.application.download_stream import DownloadStream
from gridstore.application.upload_stream import UploadStream
from gridstore.domain.entities import FileRecord
from gridstore.domain.errors import GridFSError
from gridstore.domain.services import CodecOptions, RecordCodec
from gridstore.domain.value_objects import DEFAULT_BUCKET_NAME, DEFAULT_CHUNK_SIZE, FileId
from gridstore.infrastructure.config import Config
from gridstore.infrastructure.logging import get_logger
from gridstore.infrastructure.metrics import MetricsRegistry, get_metrics
from gridstore.infrastructure.tracing import get_tracer
from gridstore.ports.outbound import (
    ASCENDING,
    ByteSink,
    Collection,
    CollectionOptions,
    Database,
    Filter,
    SortSpec,
)

FILES_INDEX = [("filename", ASCENDING), ("uploadDate", ASCENDING)]
CHUNKS_INDEX = [("files_id", ASCENDING), ("n", ASCENDING)]


class Bucket:
    """A named pair of files/chunks collections.

    The bucket holds no per-file state between calls. Configuration is fixed
    at construction.

    Thread Safety:
        A bucket may be shared between threads. Individual upload and
        download streams must not be.
    """

    def __init__(
        self,
        database: Database,
        bucket_name: str = DEFAULT_BUCKET_NAME,
        chunk_size_bytes: int = DEFAULT_CHUNK_SIZE,
        collection_options: Optional[CollectionOptions] = None,
        codec_options: Optional[CodecOptions] = None,
        metrics: Optional[MetricsRegistry] = None,
        tracer: Optional[trace.Tracer] = None,
    ) -> None:
        """Initialize the bucket.

        Args:
            database: Source of the files and chunks collections.
            bucket_name: Collection name prefix (default ``fs``).
            chunk_size_bytes: Default bytes per chunk for new uploads.
            collection_options: Read/write policies passed unchanged to both
                collections.
            codec_options: Document codec behavior flags.
            metrics: Metrics registry; the process singleton if omitted.
            tracer: Tracer; the global ``gridstore`` tracer if omitted.

        Raises:
            GridFSError: INVALID_ARGUMENT for an empty name or a
                non-positive chunk size.
        """
        if not bucket_name:
            raise GridFSError.invalid_argument("bucket_name must not be empty")
        if chunk_size_bytes <= 0:
            raise GridFSError.invalid_argument(
                f"chunk_size_bytes must be positive, got {chunk_size_bytes}"
            )

        self._name = bucket_name
        self._chunk_size = chunk_size_bytes
        self._collection_options = collection_options or CollectionOptions()
        self._files = database.get_collection(f"{bucket_name}.files", self._collection_options)
        self._chunks = database.get_collection(f"{bucket_name}.chunks", self._collection_options)
        self._codec = RecordCodec(codec_options)
        self._metrics = metrics or get_metrics()
        self._tracer = tracer or get_tracer()
        self._logger = get_logger(__name__, bucket=bucket_name)
        self._indexes_ensured = False

    @classmethod
    def from_config(
        cls,
        database: Database,
        config: Config,
        metrics: Optional[MetricsRegistry] = None,
        tracer: Optional[trace.Tracer] = None,
        **overrides: Any,
    ) -> Bucket:
        """Build a bucket from configuration.

        Keyword overrides replace the configured ``bucket_name`` or
        ``chunk_size_bytes``.
        """
        options = CollectionOptions(max_time_ms=config.bucket.max_time_ms)
        return cls(
            database,
            bucket_name=overrides.pop("bucket_name", config.bucket.bucket_name),
            chunk_size_bytes=overrides.pop("chunk_size_bytes", config.bucket.chunk_size_bytes),
            collection_options=overrides.pop("collection_options", options),
            codec_options=config.codec.to_options(),
            metrics=metrics,
            tracer=tracer,
            **overrides,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def chunk_size_bytes(self) -> int:
        return self._chunk_size

    @property
    def files(self) -> Collection:
        """The files collection. Do not modify it directly."""
        return self._files

    @property
    def chunks(self) -> Collection:
        """The chunks collection. Do not modify it directly."""
        return self._chunks

    @property
    def collection_options(self) -> CollectionOptions:
        return self._collection_options

    @property
    def codec(self) -> RecordCodec:
        return self._codec

    @property
    def metrics(self) -> MetricsRegistry:
        return self._metrics

    @property
    def tracer(self) -> trace.Tracer:
        return self._tracer

    @property
    def logger(self) -> structlog.BoundLogger:
        return self._logger

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    def ensure_indexes(self) -> None:
        """Create the files and chunks indexes if they are missing.

        Safe to call repeatedly. Uploads call it once per bucket instance;
        construction and reads never do.
        """
        self._files.create_index(FILES_INDEX)
        self._chunks.create_index(CHUNKS_INDEX, unique=True)
        self._indexes_ensured = True
        self._logger.debug("indexes_ensured")

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def open_upload_stream(
        self,
        filename: Optional[str],
        chunk_size_bytes: Optional[int] = None,
        metadata: Optional[dict[str, Any]] = None,
        file_id: Optional[FileId] = None,
        content_type: Optional[str] = None,
        aliases: Optional[list[str]] = None,
    ) -> UploadStream:
        """Start a new upload.

        Nothing is visible in the bucket until the returned stream is
        closed.

        Args:
            filename: Display name; not required to be unique.
            chunk_size_bytes: Chunk size for this file; bucket default if None.
            metadata: Arbitrary caller document stored with the file record.
            file_id: File id; a fresh one is generated if None.
            content_type: Optional MIME type.
            aliases: Optional alternative names.
        """
        if not self._indexes_ensured:
            self.ensure_indexes()
        stream = UploadStream(
            self,
            filename,
            chunk_size_bytes if chunk_size_bytes is not None else self._chunk_size,
            file_id=file_id,
            metadata=metadata,
            content_type=content_type,
            aliases=aliases,
        )
        self._logger.debug(
            "upload_stream_opened",
            file_id=str(stream.id),
            filename=filename,
            chunk_size=stream.chunk_size_bytes,
        )
        return stream

    def upload_from_stream(
        self, filename: Optional[str], source: BinaryIO, **options: Any
    ) -> FileId:
        """Read ``source`` until EOF and store it as a new file.

        Keyword options are those of :meth:`open_upload_stream`.

        Returns:
            The new file's id.
        """
        with self.open_upload_stream(filename, **options) as stream:
            while True:
                data = source.read(stream.chunk_size_bytes)
                if not data:
                    break
                stream.write(data)
        return stream.id

    def upload_from_bytes(
        self, filename: Optional[str], data: bytes, **options: Any
    ) -> FileId:
        """Store ``data`` as a new file and return its id."""
        with self.open_upload_stream(filename, **options) as stream:
            stream.write(data)
        return stream.id

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    def get_file(self, file_id: FileId) -> FileRecord:
        """Return the file record for ``file_id``.

        Raises:
            GridFSError: INVALID_ARGUMENT if ``file_id`` is None,
                FILE_NOT_FOUND if no such file exists.
        """
        if file_id is None:
            raise GridFSError.invalid_argument("no file id provided")
        document = self._files.find_one({"_id": file_id})
        if document is None:
            raise GridFSError.file_not_found(file_id)
        return self._codec.decode_file(document)

    def open_download_stream(self, file_id: FileId) -> DownloadStream:
        """Open a validated, lazy reader for ``file_id``.

        Raises:
            GridFSError: INVALID_ARGUMENT if ``file_id`` is None,
                FILE_NOT_FOUND if no such file exists.
        """
        with self._tracer.start_as_current_span(
            "gridstore.download.open",
            attributes={"gridstore.bucket": self._name, "gridstore.file_id": str(file_id)},
        ):
            record = self.get_file(file_id)
        self._logger.debug(
            "download_stream_opened", file_id=str(file_id), length=record.length
        )
        return DownloadStream(self, record)

    def download_to_stream(self, file_id: FileId, sink: ByteSink) -> int:
        """Write the contents of ``file_id`` to ``sink``, one chunk at a time.

        Returns:
            Number of bytes written.
        """
        with self._metrics.operation_latency_seconds.labels(
            bucket=self._name, operation="download"
        ).time():
            with self.open_download_stream(file_id) as stream:
                return stream.stream_to(sink)

    def download_to_bytes(self, file_id: FileId) -> bytes:
        """Return the full contents of ``file_id``."""
        sink = BufferSink()
        self.download_to_stream(file_id, sink)
        return sink.getvalue()

    # ------------------------------------------------------------------
    # Query / delete / drop
    # ------------------------------------------------------------------

    def find(
        self,
        filter: Optional[Filter] = None,
        sort: Optional[SortSpec] = None,
        limit: int = 0,
        skip: int = 0,
    ) -> Iterator[FileRecord]:
        """Query file records. Chunks are never touched."""
        for document in self._files.find(filter, sort=sort, limit=limit, skip=skip):
            yield self._codec.decode_file(document)

    def find_one(self, filter: Optional[Filter] = None) -> Optional[FileRecord]:
        document = self._files.find_one(filter)
        return self._codec.decode_file(document) if document is not None else None

    def delete(self, file_id: FileId) -> None:
        """Delete a file record and then all of its chunks.

        Chunks are only touched once a file record was removed. Chunks of
        an upload that has not committed yet are left alone.

        Raises:
            GridFSError: INVALID_ARGUMENT if ``file_id`` is None,
                FILE_NOT_FOUND if the files delete did not remove exactly
                one record.
        """
        if file_id is None:
            raise GridFSError.invalid_argument("no file id provided")

        with self._tracer.start_as_current_span(
            "gridstore.delete",
            attributes={"gridstore.bucket": self._name, "gridstore.file_id": str(file_id)},
        ), self._metrics.operation_latency_seconds.labels(
            bucket=self._name, operation="delete"
        ).time():
            deleted = self._files.delete_one({"_id": file_id})
            if deleted != 1:
                raise GridFSError.file_not_found(file_id)
            chunks_removed = self._chunks.delete_many({"files_id": file_id})

        self._metrics.files_deleted_total.labels(bucket=self._name).inc()
        self._logger.info("file_deleted", file_id=str(file_id), chunks=chunks_removed)

    def drop(self) -> None:
        """Drop the files and chunks collections. Irreversible."""
        with self._tracer.start_as_current_span(
            "gridstore.drop", attributes={"gridstore.bucket": self._name}
        ):
            self._files.drop()
            self._chunks.drop()
        self._indexes_ensured = False
        self._logger.info("bucket_dropped")

    def __repr__(self) -> str:
        return f"Bucket(name={self._name!r}, chunk_size_bytes={self._chunk_size})"
