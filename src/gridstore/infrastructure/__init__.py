"""Infrastructure layer - cross-cutting concerns.

The container module is not re-exported here because it depends on the
application layer; import it from ``gridstore.infrastructure.container``.
"""

from gridstore.infrastructure.config import Config, get_config
from gridstore.infrastructure.logging import get_logger, setup_logging
from gridstore.infrastructure.metrics import MetricsRegistry, get_metrics
from gridstore.infrastructure.tracing import get_tracer, setup_tracing

__all__ = [
    "Config",
    "get_config",
    "setup_logging",
    "get_logger",
    "MetricsRegistry",
    "get_metrics",
    "setup_tracing",
    "get_tracer",
]
