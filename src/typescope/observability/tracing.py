"""OpenTelemetry tracing for TypeScope.

Spans wrap profile scoring and config-store I/O. Tracing is off unless
enabled; with tracing off, traced_span() yields a non-recording span from
the OpenTelemetry API so call sites need no branching.

Environment Variables:
    TYPESCOPE_OTEL_ENABLED: Set to "1" to enable tracing (default: disabled)
    TYPESCOPE_OTEL_SERVICE_NAME: Service name for spans (default: "typescope")
    TYPESCOPE_OTEL_EXPORTER: Exporter type - "otlp" or "console" (default: "console")
    TYPESCOPE_OTEL_EXPORTER_OTLP_ENDPOINT: OTLP/HTTP endpoint URL (optional)
    TYPESCOPE_OTEL_TEST_CAPTURE: Set to "1" to use the in-memory exporter for tests

Span attributes carry identifiers only (framework, user id, config version),
never response vectors or override payloads.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from opentelemetry import trace

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
    from opentelemetry.sdk.trace.export import SpanExporter

logger = logging.getLogger(__name__)

TRACER_NAME = "typescope"

_tracer_provider: TracerProvider | None = None
_test_exporter: Any = None


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no"):
        return False
    return default


def _get_env_str(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _create_exporter(exporter_type: str) -> SpanExporter:
    if exporter_type == "otlp":
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

        endpoint = _get_env_str("TYPESCOPE_OTEL_EXPORTER_OTLP_ENDPOINT")
        return OTLPSpanExporter(endpoint=endpoint) if endpoint else OTLPSpanExporter()

    from opentelemetry.sdk.trace.export import ConsoleSpanExporter

    return ConsoleSpanExporter()


def configure_tracing() -> bool:
    """Configure OpenTelemetry tracing. Idempotent.

    Returns:
        True if tracing is enabled and configured, False otherwise.
    """
    global _tracer_provider, _test_exporter

    if not _get_env_bool("TYPESCOPE_OTEL_ENABLED"):
        logger.debug("OpenTelemetry tracing disabled (TYPESCOPE_OTEL_ENABLED not set)")
        return False

    if _tracer_provider is not None:
        return True

    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor

    service_name = _get_env_str("TYPESCOPE_OTEL_SERVICE_NAME", "typescope")
    exporter_type = _get_env_str("TYPESCOPE_OTEL_EXPORTER", "console")
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if _get_env_bool("TYPESCOPE_OTEL_TEST_CAPTURE"):
        from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
            InMemorySpanExporter,
        )

        _test_exporter = InMemorySpanExporter()
        provider.add_span_processor(SimpleSpanProcessor(_test_exporter))
        exporter_type = "in-memory"
    elif exporter_type == "otlp":
        provider.add_span_processor(BatchSpanProcessor(_create_exporter(exporter_type)))
    else:
        provider.add_span_processor(SimpleSpanProcessor(_create_exporter(exporter_type)))

    _tracer_provider = provider
    logger.info(
        "OpenTelemetry tracing configured: service=%s, exporter=%s", service_name, exporter_type
    )
    return True


def get_tracer() -> trace.Tracer:
    """Tracer from the configured provider, or the global (no-op) one."""
    if _tracer_provider is not None:
        return _tracer_provider.get_tracer(TRACER_NAME)
    return trace.get_tracer(TRACER_NAME)


@contextmanager
def traced_span(name: str, **attributes: Any) -> Iterator[trace.Span]:
    """Run a block inside a span; None-valued attributes are skipped."""
    with get_tracer().start_as_current_span(name) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(f"typescope.{key}", str(value))
        yield span


def get_test_spans() -> list[ReadableSpan]:
    """Spans captured by the in-memory exporter (empty when not capturing)."""
    if _test_exporter is None:
        return []
    return list(_test_exporter.get_finished_spans())


def reset_tracing() -> None:
    """Drop the configured provider and captured spans (for testing)."""
    global _tracer_provider, _test_exporter
    if _tracer_provider is not None:
        _tracer_provider.shutdown()
    _tracer_provider = None
    _test_exporter = None


def instrument_fastapi(app: Any) -> None:
    """Instrument a FastAPI app; no-op unless tracing is enabled."""
    if not _get_env_bool("TYPESCOPE_OTEL_ENABLED"):
        return

    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(app, excluded_urls="health")
        logger.debug("FastAPI instrumented with OpenTelemetry")
    except Exception as e:
        logger.warning("Failed to instrument FastAPI: %s", e)


def instrument_sqlalchemy(engine: Any) -> None:
    """Instrument a SQLAlchemy engine; no-op unless tracing is enabled."""
    if not _get_env_bool("TYPESCOPE_OTEL_ENABLED"):
        return

    try:
        from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

        SQLAlchemyInstrumentor().instrument(engine=engine, enable_commenter=False)
        logger.debug("SQLAlchemy engine instrumented with OpenTelemetry")
    except Exception as e:
        logger.warning("Failed to instrument SQLAlchemy: %s", e)
