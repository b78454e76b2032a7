"""Dependency injection container for gridstore."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

import structlog
from opentelemetry import trace

from gridstore.application.bucket import Bucket
from gridstore.infrastructure.config import Config, get_config
from gridstore.infrastructure.logging import setup_logging
from gridstore.infrastructure.metrics import MetricsRegistry, get_metrics
from gridstore.infrastructure.tracing import setup_tracing
from gridstore.ports.outbound import Database


@dataclass
class Container:
    """Dependency injection container for bucket storage components."""

    config: Config
    logger: structlog.BoundLogger
    tracer: trace.Tracer
    metrics: MetricsRegistry

    _instance: ClassVar["Container | None"] = None

    @classmethod
    def create(cls) -> "Container":
        """Create and initialize the container with all dependencies."""
        if cls._instance is not None:
            return cls._instance

        config = get_config()
        logger = setup_logging(config.observability)
        tracer = setup_tracing(config.observability)
        metrics = get_metrics()

        cls._instance = cls(
            config=config,
            logger=logger,
            tracer=tracer,
            metrics=metrics,
        )

        logger.info(
            "gridstore_container_initialized",
            bucket_name=config.bucket.bucket_name,
            chunk_size_bytes=config.bucket.chunk_size_bytes,
            compute_md5=config.codec.compute_md5,
        )

        return cls._instance

    @classmethod
    def get(cls) -> "Container":
        """Get the singleton container instance."""
        if cls._instance is None:
            return cls.create()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the container (useful for testing)."""
        cls._instance = None

    def bucket(self, database: Database, **overrides: Any) -> Bucket:
        """Build a bucket on ``database`` wired to this container's services."""
        return Bucket.from_config(
            database,
            self.config,
            metrics=self.metrics,
            tracer=self.tracer,
            **overrides,
        )


def get_container() -> Container:
    """Get the dependency injection container."""
    return Container.get()
