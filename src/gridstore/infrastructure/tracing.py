"""OpenTelemetry tracing configuration for gridstore."""

from __future__ import annotations

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from gridstore import __version__
from gridstore.infrastructure.config import ObservabilityConfig

TRACER_NAME = "gridstore"


def setup_tracing(config: ObservabilityConfig | None = None) -> trace.Tracer:
    """Configure OpenTelemetry tracing for gridstore."""
    config = config or ObservabilityConfig()

    resource = Resource.create(
        {
            "service.name": config.otel_service_name,
            "service.version": __version__,
            "deployment.environment": config.environment,
        }
    )

    provider = TracerProvider(resource=resource)

    if config.otel_endpoint:
        otlp_exporter = OTLPSpanExporter(
            endpoint=config.otel_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
    else:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)

    return trace.get_tracer(TRACER_NAME)


def get_tracer(name: str = TRACER_NAME) -> trace.Tracer:
    """Get a tracer instance."""
    return trace.get_tracer(name)
