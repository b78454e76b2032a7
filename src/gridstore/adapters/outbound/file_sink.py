"""ByteSink adapters.

- FileObjectSink: writes byte ranges to a binary file object
- BufferSink: accumulates byte ranges in memory
"""

from __future__ import annotations

from typing import BinaryIO


class FileObjectSink:
    """Writes each byte range to a binary file object.

    Attributes:
        bytes_written: Total bytes handed to the file object so far.
    """

    def __init__(self, fileobj: BinaryIO) -> None:
        self._fileobj = fileobj
        self.bytes_written = 0

    def write(self, data: bytes) -> int:
        view = memoryview(data)
        while view:
            # Raw streams may accept only part of the buffer.
            written = self._fileobj.write(view)
            if written is None:
                raise BlockingIOError("file object is non-blocking and not ready")
            view = view[written:]
        self.bytes_written += len(data)
        return len(data)


class BufferSink:
    """Collects byte ranges in memory."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def write(self, data: bytes) -> int:
        self._buffer += data
        return len(data)

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)
