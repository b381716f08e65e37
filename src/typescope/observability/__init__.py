"""Observability helpers (OpenTelemetry tracing)."""

from typescope.observability.tracing import configure_tracing, traced_span

__all__ = ["configure_tracing", "traced_span"]
