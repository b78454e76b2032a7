"""Chunk codec: pure mapping between records and collection documents.

Persisted layout:

    files:  {_id, filename, length, chunkSize, uploadDate,
             metadata?, contentType?, aliases?, md5?}
    chunks: {_id, files_id, n, data}

No I/O happens here. Behavior flags are carried by an explicit
:class:`CodecOptions` value handed to :class:`RecordCodec` at construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from gridstore.domain.entities import ChunkRecord, FileRecord
from gridstore.domain.errors import GridFSError
from gridstore.domain.value_objects import FileId, new_chunk_id

# Keys owned by the codec; anything else in a files document is kept in
# FileRecord.extra.
_FILE_KEYS = frozenset(
    {
        "_id",
        "filename",
        "length",
        "chunkSize",
        "uploadDate",
        "metadata",
        "contentType",
        "aliases",
        "md5",
    }
)


@dataclass(frozen=True, slots=True)
class CodecOptions:
    """Behavior flags for document encoding and decoding.

    Attributes:
        tz_aware: Decode ``uploadDate`` as a timezone-aware UTC datetime.
            When False, decoded datetimes are naive UTC.
        compute_md5: Upload streams compute and persist an MD5 digest of
            the file content.
    """

    tz_aware: bool = True
    compute_md5: bool = False


class RecordCodec:
    """Encodes and decodes file and chunk documents."""

    def __init__(self, options: CodecOptions | None = None) -> None:
        self._options = options or CodecOptions()

    @property
    def options(self) -> CodecOptions:
        return self._options

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    def encode_chunk(
        self,
        files_id: FileId,
        n: int,
        chunk_size: int,
        data: bytes,
        chunk_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """Build a chunk document.

        Args:
            files_id: Owning file id.
            n: Zero-based chunk index.
            chunk_size: The file's chunk size; ``data`` may not exceed it.
            data: Chunk payload.
            chunk_id: Chunk ``_id``; generated when omitted.

        Raises:
            GridFSError: INVALID_ARGUMENT for a negative index, an empty
                payload, or a payload larger than ``chunk_size``.
        """
        if n < 0:
            raise GridFSError.invalid_argument(
                f"chunk index must be non-negative, got {n}", file_id=files_id
            )
        if not data:
            raise GridFSError.invalid_argument(
                f"chunk {n} has no data", file_id=files_id
            )
        if len(data) > chunk_size:
            raise GridFSError.invalid_argument(
                f"chunk {n} holds {len(data)} bytes, more than chunk size {chunk_size}",
                file_id=files_id,
            )
        return {
            "_id": chunk_id if chunk_id is not None else new_chunk_id(),
            "files_id": files_id,
            "n": n,
            "data": bytes(data),
        }

    def decode_chunk(self, document: Mapping[str, Any]) -> ChunkRecord:
        """Build a :class:`ChunkRecord` from a chunk document.

        Raises:
            GridFSError: INVALID_ARGUMENT if a required field is missing,
                ``n`` is not an integer, or ``data`` is not binary.
        """
        try:
            chunk_id = document["_id"]
            files_id = document["files_id"]
            n = int(document["n"])
            data = document["data"]
        except KeyError as exc:
            raise GridFSError.invalid_argument(
                f"chunk document is missing field {exc.args[0]!r}"
            ) from exc
        except (TypeError, ValueError) as exc:
            raise GridFSError.invalid_argument(
                f"chunk document has a malformed index {document.get('n')!r}",
                file_id=document.get("files_id"),
            ) from exc
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise GridFSError.invalid_argument(
                f"chunk {n} data is {type(data).__name__}, expected bytes",
                file_id=files_id,
            )
        return ChunkRecord(id=chunk_id, files_id=files_id, n=n, data=bytes(data))

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def encode_file(self, record: FileRecord) -> dict[str, Any]:
        """Build a files document. Absent optional fields are omitted."""
        document: dict[str, Any] = dict(record.extra)
        document.update(
            {
                "_id": record.id,
                "filename": record.filename,
                "length": record.length,
                "chunkSize": record.chunk_size,
                "uploadDate": record.upload_time,
            }
        )
        if record.metadata is not None:
            document["metadata"] = record.metadata
        if record.content_type:
            document["contentType"] = record.content_type
        if record.aliases:
            document["aliases"] = list(record.aliases)
        if record.md5:
            document["md5"] = record.md5
        return document

    def decode_file(self, document: Mapping[str, Any]) -> FileRecord:
        """Build a :class:`FileRecord` from a files document.

        Raises:
            GridFSError: INVALID_ARGUMENT if ``_id``, ``length`` or
                ``chunkSize`` is missing or not an integer, or the
                length/chunk size pair cannot describe a valid layout.
        """
        try:
            file_id = document["_id"]
            length = int(document["length"])
            chunk_size = int(document["chunkSize"])
        except KeyError as exc:
            raise GridFSError.invalid_argument(
                f"files document is missing field {exc.args[0]!r}"
            ) from exc
        except (TypeError, ValueError) as exc:
            raise GridFSError.invalid_argument(
                f"files document has a malformed length {document.get('length')!r} "
                f"or chunkSize {document.get('chunkSize')!r}",
                file_id=document["_id"],
            ) from exc

        if length < 0:
            raise GridFSError.invalid_argument(
                f"file length must be non-negative, got {length}", file_id=file_id
            )
        if length > 0 and chunk_size <= 0:
            raise GridFSError.invalid_argument(
                f"file chunk size must be positive, got {chunk_size}", file_id=file_id
            )

        return FileRecord(
            id=file_id,
            filename=document.get("filename"),
            length=length,
            chunk_size=chunk_size,
            upload_time=self._decode_datetime(document.get("uploadDate")),
            metadata=document.get("metadata"),
            content_type=document.get("contentType"),
            aliases=document.get("aliases"),
            md5=document.get("md5"),
            extra={k: v for k, v in document.items() if k not in _FILE_KEYS},
        )

    def _decode_datetime(self, value: Any) -> datetime:
        if value is None:
            value = datetime.fromtimestamp(0, tz=timezone.utc)
        if not isinstance(value, datetime):
            raise GridFSError.invalid_argument(
                f"uploadDate is {type(value).__name__}, expected datetime"
            )
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        else:
            value = value.astimezone(timezone.utc)
        if not self._options.tz_aware:
            value = value.replace(tzinfo=None)
        return value
