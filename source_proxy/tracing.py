"""
OpenTelemetry tracing for storage backend calls.

Exporter is selected via ``settings.otel_exporter`` (``OTEL_EXPORTER``):

- ``console``  — prints spans to stdout (default for development)
- ``otlp``     — ships spans to ``OTEL_EXPORTER_OTLP_ENDPOINT``
- ``none``     — no exporter

Every backend call made by the orchestrator runs inside a
``storage_span`` so a slow export or fetch shows up with its prefix and
filename attached.
"""
from contextlib import contextmanager
from typing import Iterator

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.resources import Resource
from opentelemetry.trace import Status, StatusCode

from source_proxy.config import settings


def _init_tracing() -> None:
    """Install the tracer provider for the configured exporter."""
    resource = Resource.create({"service.name": settings.otel_service_name})
    provider = TracerProvider(resource=resource)

    exporter_type = settings.otel_exporter.lower()
    if exporter_type == "otlp":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        exporter = OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint)
        provider.add_span_processor(BatchSpanProcessor(exporter))
    elif exporter_type == "console":
        from opentelemetry.sdk.trace.export import (
            SimpleSpanProcessor,
            ConsoleSpanExporter,
        )

        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)


def get_tracer(name: str) -> trace.Tracer:
    """Return a tracer for *name*."""
    return trace.get_tracer(name)


@contextmanager
def storage_span(operation: str, prefix: str, filename: str) -> Iterator[trace.Span]:
    """Wrap a backend call in a span named ``storage.<operation>``."""
    tracer = get_tracer("source_proxy.storage")
    with tracer.start_as_current_span(f"storage.{operation}") as span:
        span.set_attribute("storage.prefix", prefix)
        span.set_attribute("storage.filename", filename)
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, type(exc).__name__))
            raise


# Auto-initialize on import
_init_tracing()
