"""Unit tests for the upload stream."""

from __future__ import annotations

import hashlib
from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry

from gridstore.adapters.outbound import InMemoryDatabase
from gridstore.application import Bucket, UploadState
from gridstore.domain.errors import ErrorKind, GridFSError
from gridstore.domain.services import CodecOptions
from gridstore.infrastructure.metrics import MetricsRegistry


def stored_chunks(bucket: Bucket, file_id: object) -> list[tuple[int, bytes]]:
    return [
        (doc["n"], doc["data"])
        for doc in bucket.chunks.find({"files_id": file_id}, sort=[("n", 1)])
    ]


@pytest.mark.unit
class TestUploadChunking:
    """Test how written bytes become chunks."""

    def test_partial_final_chunk(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("letters.txt")
        stream.write(b"ABCDEFGHI")
        record = stream.close()

        assert stored_chunks(bucket, stream.id) == [(0, b"ABCD"), (1, b"EFGH"), (2, b"I")]
        assert record.length == 9
        assert record.chunk_size == 4

    def test_exact_multiple_writes_no_extra_chunk(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("letters.txt")
        stream.write(b"ABCDEFGH")
        stream.close()

        assert stored_chunks(bucket, stream.id) == [(0, b"ABCD"), (1, b"EFGH")]

    def test_empty_upload_writes_no_chunks(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("empty.txt")
        record = stream.close()

        assert stored_chunks(bucket, stream.id) == []
        assert record.length == 0
        assert bucket.files.find_one({"_id": stream.id})["length"] == 0

    def test_slices_unrelated_to_chunk_size(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("letters.txt")
        for piece in (b"A", b"BCDEF", b"", b"GH", b"IJKLMNOPQ"):
            stream.write(piece)
        stream.close()

        assert stored_chunks(bucket, stream.id) == [
            (0, b"ABCD"),
            (1, b"EFGH"),
            (2, b"IJKL"),
            (3, b"MNOP"),
            (4, b"Q"),
        ]

    def test_full_chunks_persisted_before_close(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("letters.txt")
        stream.write(b"ABCDEF")

        assert stored_chunks(bucket, stream.id) == [(0, b"ABCD")]
        assert stream.chunks_written == 1
        assert bucket.files.find_one({"_id": stream.id}) is None

    def test_per_file_chunk_size(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("letters.txt", chunk_size_bytes=3)
        stream.write(b"ABCDEFG")
        record = stream.close()

        assert record.chunk_size == 3
        assert stored_chunks(bucket, stream.id) == [(0, b"ABC"), (1, b"DEF"), (2, b"G")]

    def test_writelines(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("lines.txt")
        stream.writelines([b"ab\n", b"cd\n"])
        stream.close()

        assert stream.length == 6


@pytest.mark.unit
class TestUploadRecord:
    """Test the committed file record."""

    def test_record_fields(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream(
            "report.csv",
            metadata={"owner": "ops"},
            file_id="report-1",
            content_type="text/csv",
            aliases=["latest.csv"],
        )
        stream.write(b"a,b\n")
        record = stream.close()

        document = bucket.files.find_one({"_id": "report-1"})
        assert document["filename"] == "report.csv"
        assert document["chunkSize"] == 4
        assert document["metadata"] == {"owner": "ops"}
        assert document["contentType"] == "text/csv"
        assert document["aliases"] == ["latest.csv"]
        assert "md5" not in document
        assert record.upload_time.tzinfo is not None
        assert stream.file == record

    def test_generated_id(self, bucket: Bucket) -> None:
        first = bucket.open_upload_stream("a")
        second = bucket.open_upload_stream("a")
        assert first.id != second.id

    def test_md5_when_enabled(self, database: InMemoryDatabase, metrics_registry) -> None:
        bucket = Bucket(
            database,
            chunk_size_bytes=4,
            codec_options=CodecOptions(compute_md5=True),
            metrics=metrics_registry,
        )
        stream = bucket.open_upload_stream("letters.txt")
        stream.write(b"ABCDEFGHI")
        record = stream.close()

        assert record.md5 == hashlib.md5(b"ABCDEFGHI").hexdigest()
        assert bucket.files.find_one({"_id": stream.id})["md5"] == record.md5


@pytest.mark.unit
class TestUploadLifecycle:
    """Test stream states."""

    def test_state_transitions(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("x")
        assert stream.state is UploadState.OPEN

        stream.write(b"AB")
        assert stream.state is UploadState.WRITING

        stream.close()
        assert stream.state is UploadState.CLOSED
        assert stream.closed

    def test_close_twice_returns_same_record(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("x")
        stream.write(b"AB")

        assert stream.close() is stream.close()
        assert bucket.files.count_documents() == 1

    def test_close_after_close_writes_nothing(self, bucket: Bucket) -> None:
        with bucket.open_upload_stream("x") as stream:
            stream.write(b"ABCDE")

        with patch.object(bucket.files, "insert_one") as files_insert, patch.object(
            bucket.chunks, "insert_one"
        ) as chunks_insert:
            record = stream.close()

        files_insert.assert_not_called()
        chunks_insert.assert_not_called()
        assert record is stream.file
        assert record.length == 5

    def test_write_after_close(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("x")
        stream.close()

        with pytest.raises(GridFSError) as exc_info:
            stream.write(b"late")
        assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENT

    def test_write_rejects_text(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("x")
        with pytest.raises(GridFSError):
            stream.write("text")  # type: ignore[arg-type]

    def test_non_positive_chunk_size(self, bucket: Bucket) -> None:
        with pytest.raises(GridFSError) as exc_info:
            bucket.open_upload_stream("x", chunk_size_bytes=0)
        assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENT

    def test_context_manager_closes(self, bucket: Bucket) -> None:
        with bucket.open_upload_stream("x") as stream:
            stream.write(b"ABCDE")

        assert stream.state is UploadState.CLOSED
        assert bucket.files.find_one({"_id": stream.id})["length"] == 5

    def test_context_manager_exception_leaves_chunks(self, bucket: Bucket) -> None:
        with pytest.raises(RuntimeError):
            with bucket.open_upload_stream("x") as stream:
                stream.write(b"ABCDEFGHI")
                raise RuntimeError("caller failure")

        assert stream.state is UploadState.ABORTED
        assert bucket.files.find_one({"_id": stream.id}) is None
        assert len(stored_chunks(bucket, stream.id)) == 2

    def test_abort_removes_written_chunks(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("x")
        stream.write(b"ABCDEFGHI")

        assert stream.abort() == 2
        assert stream.state is UploadState.ABORTED
        assert stored_chunks(bucket, stream.id) == []
        with pytest.raises(GridFSError):
            stream.close()

    def test_abort_after_close(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("x")
        stream.close()

        with pytest.raises(GridFSError):
            stream.abort()


@pytest.mark.chaos
class TestUploadFailures:
    """Test persistence failures during upload."""

    def test_chunk_insert_failure_propagates(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("x")
        stream.write(b"ABCD")

        with patch.object(bucket.chunks, "insert_one", side_effect=ConnectionError("reset")):
            with pytest.raises(ConnectionError):
                stream.write(b"EFGH")

        assert stream.state is UploadState.ABORTED
        assert stored_chunks(bucket, stream.id) == [(0, b"ABCD")]
        with pytest.raises(GridFSError):
            stream.write(b"more")

    def test_file_record_failure_leaves_orphaned_chunks(self, bucket: Bucket) -> None:
        stream = bucket.open_upload_stream("x")
        stream.write(b"ABCDEFGHI")

        with patch.object(bucket.files, "insert_one", side_effect=TimeoutError("deadline")):
            with pytest.raises(TimeoutError):
                stream.close()

        assert stream.state is UploadState.ABORTED
        assert bucket.files.find_one({"_id": stream.id}) is None
        assert len(stored_chunks(bucket, stream.id)) == 3


@pytest.mark.unit
class TestUploadMetrics:
    """Test upload instrumentation."""

    def test_counters(
        self, database: InMemoryDatabase, collector_registry: CollectorRegistry
    ) -> None:
        bucket = Bucket(
            database,
            chunk_size_bytes=4,
            metrics=MetricsRegistry(registry=collector_registry),
        )
        bucket.upload_from_bytes("letters.txt", b"ABCDEFGHI")

        labels = {"bucket": "fs"}
        assert collector_registry.get_sample_value("gridstore_files_uploaded_total", labels) == 1
        assert collector_registry.get_sample_value("gridstore_chunks_written_total", labels) == 3
        assert collector_registry.get_sample_value("gridstore_bytes_uploaded_total", labels) == 9
