"""Application layer: the bucket and its upload/download streams."""

from gridstore.application.bucket import Bucket
from gridstore.application.download_stream import DownloadStream
from gridstore.application.upload_stream import UploadState, UploadStream

__all__ = [
    "Bucket",
    "DownloadStream",
    "UploadState",
    "UploadStream",
]
