"""Domain services."""

from gridstore.domain.services.chunk_codec import CodecOptions, RecordCodec

__all__ = [
    "CodecOptions",
    "RecordCodec",
]
