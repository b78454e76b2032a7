"""Prometheus metrics for gridstore."""

from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


class MetricsRegistry:
    """Registry of all bucket storage metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # File operations
        self.files_uploaded_total = Counter(
            "gridstore_files_uploaded_total",
            "Total files whose file record was committed",
            ["bucket"],
            registry=self._registry,
        )

        self.files_deleted_total = Counter(
            "gridstore_files_deleted_total",
            "Total files deleted",
            ["bucket"],
            registry=self._registry,
        )

        self.upload_aborts_total = Counter(
            "gridstore_upload_aborts_total",
            "Total uploads abandoned without a file record",
            ["bucket"],
            registry=self._registry,
        )

        # Chunk traffic
        self.chunks_written_total = Counter(
            "gridstore_chunks_written_total",
            "Total chunk documents inserted",
            ["bucket"],
            registry=self._registry,
        )

        self.chunks_read_total = Counter(
            "gridstore_chunks_read_total",
            "Total chunk documents read and validated",
            ["bucket"],
            registry=self._registry,
        )

        self.bytes_uploaded_total = Counter(
            "gridstore_bytes_uploaded_total",
            "Total bytes written into chunks",
            ["bucket"],
            registry=self._registry,
        )

        self.bytes_downloaded_total = Counter(
            "gridstore_bytes_downloaded_total",
            "Total validated bytes handed to readers",
            ["bucket"],
            registry=self._registry,
        )

        # Integrity
        self.integrity_errors_total = Counter(
            "gridstore_integrity_errors_total",
            "Total chunk validation failures",
            ["bucket", "error_type"],
            registry=self._registry,
        )

        # Latency
        self.operation_latency_seconds = Histogram(
            "gridstore_operation_latency_seconds",
            "Bucket operation latency in seconds",
            ["bucket", "operation"],
            buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0),
            registry=self._registry,
        )


_metrics: MetricsRegistry | None = None


def get_metrics() -> MetricsRegistry:
    """Get the singleton metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
