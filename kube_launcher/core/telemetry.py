from typing import Any, Dict, Optional
import functools
import logging

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

from kube_launcher.core.config import Settings, settings

TRACER_NAME = "kube_launcher"

# Global flag to ensure initialization only happens once
_initialized = False


def init_telemetry(source: Optional[Settings] = None) -> None:
    """
    Configure logging and span export for a process that has neither.

    Importing the package never touches the root logger or the global tracer
    provider; the host application calls this once at startup if it wants
    the launcher to set them up. A tracer provider is only installed when an
    exporter endpoint is configured.
    """
    global _initialized

    if _initialized:
        return

    source = source or settings

    logging.basicConfig(
        level=getattr(logging, source.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if source.otel_exporter_endpoint:
        headers = {}
        if source.otel_exporter_token:
            headers["Authorization"] = f"Bearer {source.otel_exporter_token}"
        exporter = OTLPSpanExporter(
            endpoint=source.otel_exporter_endpoint, headers=headers
        )
        resource = Resource(attributes={SERVICE_NAME: source.otel_service_name})
        provider = TracerProvider(resource=resource)
        provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(provider)

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.
    Handlers and levels are left to the host or to init_telemetry().
    """
    return logging.getLogger(name)


def get_tracer() -> trace.Tracer:
    # Resolved per call so a provider installed after import is picked up
    return trace.get_tracer(TRACER_NAME)


# Custom decorator for automatic span naming
def trace_span(func):
    """Decorator that automatically creates a span with the function name."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        span_name = func.__name__
        if args and hasattr(args[0], "__class__"):
            # If it's a method, include class name
            span_name = f"{args[0].__class__.__name__}.{func.__name__}"

        with get_tracer().start_as_current_span(span_name):
            return func(*args, **kwargs)

    return wrapper


def log_span_event(message: str, attributes: Optional[Dict[str, Any]] = None):
    """
    Record a message as an event in the current span.
    Also logs it so it appears without a trace backend.
    """
    current_span = trace.get_current_span()
    if current_span and current_span.is_recording():
        current_span.add_event(message, attributes=attributes or {})

    logger = get_logger(__name__)
    logger.info(message, extra={"span_attributes": attributes or {}})
