"""OpenTelemetry setup for the interview voice engine.

Provides a configurable TracerProvider selected by ``OTEL_EXPORTER``:
  - ``console`` (default): ConsoleSpanExporter — spans print to stdout.
  - ``otlp``: OTLPSpanExporter — ships spans to an OTLP-compatible collector.
  - ``none``: provider installed without exporters (tests, quiet local runs).

Usage:
    from interview_voice.telemetry import init_telemetry, get_tracer

    init_telemetry("console")   # call once at startup (lifespan)
    tracer = get_tracer()       # use anywhere
    with tracer.start_as_current_span("interview.submit"):
        ...
"""

from __future__ import annotations

import logging
import os

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)

logger = logging.getLogger(__name__)

_SERVICE_NAME = "interview-voice-engine"
_TRACER_NAME = "interview_voice"
_initialized = False


def init_telemetry(exporter: str = "console") -> None:
    """Install the global TracerProvider once per process.

    ``otlp`` requires the ``opentelemetry-exporter-otlp`` extra and reads
    ``OTEL_EXPORTER_OTLP_ENDPOINT`` (default ``http://localhost:4317``).
    """
    global _initialized
    if _initialized:
        return

    provider = TracerProvider(resource=Resource.create({"service.name": _SERVICE_NAME}))

    exporter = exporter.lower()
    if exporter == "otlp":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        endpoint = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        logger.info("[Telemetry] OTLP exporter → %s", endpoint)
    elif exporter == "none":
        logger.info("[Telemetry] Tracing enabled without exporter.")
    else:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        logger.info("[Telemetry] Console exporter active (dev mode).")

    trace.set_tracer_provider(provider)
    _initialized = True


def get_tracer() -> trace.Tracer:
    """Return the engine tracer (safe to call before ``init_telemetry``)."""
    return trace.get_tracer(_TRACER_NAME)

