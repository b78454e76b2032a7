"""Pytest configuration and shared fixtures for gridstore tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Generator

import pytest
from prometheus_client import CollectorRegistry

from gridstore.adapters.outbound import InMemoryDatabase
from gridstore.application import Bucket
from gridstore.domain.services import RecordCodec
from gridstore.infrastructure.config import Config
from gridstore.infrastructure.container import Container
from gridstore.infrastructure.metrics import MetricsRegistry


@pytest.fixture(autouse=True)
def reset_container() -> Generator[None, None, None]:
    """Reset the DI container before each test."""
    Container.reset()
    yield
    Container.reset()


@pytest.fixture
def test_config() -> Config:
    """Provide a default configuration."""
    return Config()


@pytest.fixture
def collector_registry() -> CollectorRegistry:
    """Provide an isolated Prometheus registry."""
    return CollectorRegistry(auto_describe=True)


@pytest.fixture
def metrics_registry(collector_registry: CollectorRegistry) -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    return MetricsRegistry(registry=collector_registry)


@pytest.fixture
def database() -> InMemoryDatabase:
    """Provide an empty in-memory database."""
    return InMemoryDatabase()


@pytest.fixture
def bucket(database: InMemoryDatabase, metrics_registry: MetricsRegistry) -> Bucket:
    """Provide a bucket with a 4-byte chunk size."""
    return Bucket(database, chunk_size_bytes=4, metrics=metrics_registry)


@pytest.fixture
def store_raw_file(
    database: InMemoryDatabase,
) -> Callable[..., None]:
    """Write a files document and chunk documents directly, with no indexes.

    Lets tests build layouts an upload would never produce, such as
    duplicate chunk indices.
    """
    codec = RecordCodec()

    def store(
        file_id: object,
        length: int,
        chunk_size: int,
        chunks: list[tuple[int, bytes]],
        bucket_name: str = "fs",
    ) -> None:
        files = database.get_collection(f"{bucket_name}.files")
        chunk_coll = database.get_collection(f"{bucket_name}.chunks")
        files.insert_one(
            {
                "_id": file_id,
                "filename": "raw.bin",
                "length": length,
                "chunkSize": chunk_size,
                "uploadDate": datetime(2024, 1, 1, tzinfo=timezone.utc),
            }
        )
        for n, data in chunks:
            chunk_coll.insert_one(codec.encode_chunk(file_id, n, max(chunk_size, len(data)), data))

    return store


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "chaos: Chaos/fault injection tests")
    config.addinivalue_line("markers", "property: Property-based tests")
