import asyncio
import functools
import logging
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from common.core.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Global flag to ensure initialization only happens once
_initialized = False
tracer = trace.get_tracer("lambda-operator")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger."""
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        force=True,  # This ensures it overrides any existing configuration
    )
    # The watch stream logs every chunk at DEBUG
    logging.getLogger("kubernetes").setLevel(logging.INFO)


def initialize_telemetry(settings: Settings) -> None:
    """Initialize logging and tracing once and only once."""
    global _initialized, tracer

    if _initialized:
        return

    setup_logging(settings.log_level)

    resource = Resource(attributes={SERVICE_NAME: settings.otel_service_name})
    provider = TracerProvider(resource=resource)
    if settings.otel_exporter_otlp_endpoint:
        exporter = OTLPSpanExporter(
            endpoint=f"{settings.otel_exporter_otlp_endpoint.rstrip('/')}/v1/traces"
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    tracer = trace.get_tracer(settings.otel_service_name)

    _initialized = True
    logging.getLogger(__name__).info(
        f"Telemetry initialized (otlp endpoint: {settings.otel_exporter_otlp_endpoint})"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.
    Use this instead of logging.getLogger() directly.
    """
    return logging.getLogger(name)


# Custom decorator for automatic span naming
def trace_span(func):
    """Decorator that automatically creates a span with the function name."""

    def _span_name(args) -> str:
        if args and hasattr(args[0], func.__name__):
            # If it's a method, include class name
            return f"{args[0].__class__.__name__}.{func.__name__}"
        return func.__name__

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        with tracer.start_as_current_span(_span_name(args)):
            return func(*args, **kwargs)

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        with tracer.start_as_current_span(_span_name(args)):
            return await func(*args, **kwargs)

    # Return appropriate wrapper based on function type
    if asyncio.iscoroutinefunction(func):
        return async_wrapper
    else:
        return sync_wrapper


def log_span_event(message: str, attributes: Optional[dict] = None):
    """
    Log a message as an event in the current span.
    The message is also logged normally.
    """
    current_span = trace.get_current_span()
    if current_span and current_span.is_recording():
        current_span.add_event(message, attributes=attributes or {})

    get_logger(__name__).info(message)
