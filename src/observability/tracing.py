"""OpenTelemetry tracing helpers.

Spans are created in-process even when no exporter is configured, so phase
timings are available to any provider installed by the environment.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

import structlog
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider

logger = structlog.get_logger(__name__)


@lru_cache()
def init_tracing(service_name: str) -> None:
    # Avoid overriding an existing provider configured by the environment.
    provider = trace.get_tracer_provider()
    if isinstance(provider, TracerProvider):
        return
    trace.set_tracer_provider(
        TracerProvider(resource=Resource.create({"service.name": service_name}))
    )


def get_tracer(name: str):
    return trace.get_tracer(name)


@contextmanager
def traced_phase(tracer, name: str, **attributes) -> Iterator[trace.Span]:
    """Run a pipeline phase inside a span and log its duration."""

    start = time.monotonic()
    with tracer.start_as_current_span(name) as span:
        for key, value in attributes.items():
            span.set_attribute(key, value)
        yield span
    logger.debug("phase.completed", phase=name, duration_ms=round((time.monotonic() - start) * 1000, 2))
