"""Tracing helpers built on OpenTelemetry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.trace import Tracer

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import TelemetryConfig


_TRACER: Tracer | None = None
_TRACER_PROVIDER: TracerProvider | None = None


def get_tracer(name: str = "navalbattle") -> Tracer:
    """Return the shared tracer, or a proxy from the global provider before setup."""
    global _TRACER
    if _TRACER is None:
        _TRACER = trace.get_tracer(name)
    return _TRACER


def init_tracing(config: TelemetryConfig) -> Tracer:
    """Install a TracerProvider exporting to OTLP, or to the console without an endpoint.

    Session and engine spans (``navalbattle.session.game``, ``board.record_shot``, ...)
    all go through the tracer returned here once it is installed.
    """
    global _TRACER, _TRACER_PROVIDER

    provider = TracerProvider(resource=Resource.create(config.resource()))
    if config.otlp_traces_endpoint:
        processor = BatchSpanProcessor(
            OTLPSpanExporter(endpoint=config.otlp_traces_endpoint, insecure=True)
        )
    else:
        processor = SimpleSpanProcessor(ConsoleSpanExporter())
    provider.add_span_processor(processor)

    trace.set_tracer_provider(provider)
    _TRACER_PROVIDER = provider
    _TRACER = provider.get_tracer(config.service_name)
    return _TRACER


def shutdown_tracing() -> None:
    """Flush batched spans and stop the provider installed by ``init_tracing``."""
    global _TRACER, _TRACER_PROVIDER
    if _TRACER_PROVIDER is None:
        return
    _TRACER_PROVIDER.force_flush()
    _TRACER_PROVIDER.shutdown()
    _TRACER_PROVIDER = None
    _TRACER = None
