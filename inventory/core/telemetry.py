"""OpenTelemetry tracing and log export."""

import threading
from collections.abc import Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog
from opentelemetry import trace
from opentelemetry._logs import set_logger_provider as otel_set_logger_provider
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import SpanKind, Status, StatusCode

from inventory import __version__
from inventory.core.config import require_config, settings

if TYPE_CHECKING:
    from opentelemetry.trace.span import Span

logger = structlog.get_logger(__name__)

# Providers are created lazily so each forked uvicorn worker builds its own
_tracer_provider: TracerProvider | None = None
_tracer_provider_lock = threading.Lock()
_logger_provider: LoggerProvider | None = None
_logger_provider_lock = threading.Lock()

# OpenTelemetry attribute values can be primitives or lists of primitives
AttributeValue = str | int | float | bool | list[str] | list[int] | list[float] | list[bool]


def _build_resource() -> Resource:
    """Resource shared by traces and logs so the two can be correlated."""
    return Resource(
        attributes={
            "service.name": settings.OTEL_SERVICE_NAME,
            "service.version": __version__,
            "deployment.environment": settings.OTEL_ENVIRONMENT,
        }
    )


def _parse_otlp_headers(headers_str: str) -> dict[str, str]:
    """
    Parse OTLP headers from comma-separated key=value pairs.

    Args:
        headers_str: Headers in format "key1=value1,key2=value2"

    Returns:
        Dictionary of parsed headers; malformed pairs are skipped with a warning

    Example:
        >>> _parse_otlp_headers("Authorization=Bearer token123,X-Custom=value")
        {'Authorization': 'Bearer token123', 'X-Custom': 'value'}
    """
    headers: dict[str, str] = {}
    for raw_pair in headers_str.split(","):
        pair = raw_pair.strip()
        if not pair:
            continue
        key, separator, value = pair.partition("=")
        if not separator:
            logger.warning("otel_malformed_header", pair=pair)
            continue
        headers[key.strip()] = value.strip()
    return headers


def get_tracer_provider() -> TracerProvider | None:
    """
    Get or create the process TracerProvider.

    Returns:
        TracerProvider if OTEL is enabled, None otherwise
    """
    if not settings.OTEL_ENABLED:
        return None

    global _tracer_provider  # noqa: PLW0603
    if _tracer_provider is None:
        with _tracer_provider_lock:
            if _tracer_provider is None:  # Double-checked locking
                _tracer_provider = _create_tracer_provider()
    return _tracer_provider


def _create_tracer_provider() -> TracerProvider:
    """
    Build a TracerProvider with an OTLP/HTTP exporter when an endpoint is set.

    Raises:
        ValueError: If the traces endpoint is missing outside DEBUG mode
    """
    if not settings.DEBUG:
        require_config("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")

    provider = TracerProvider(resource=_build_resource())

    if settings.OTEL_EXPORTER_OTLP_TRACES_ENDPOINT:
        exporter = OTLPSpanExporter(
            endpoint=settings.OTEL_EXPORTER_OTLP_TRACES_ENDPOINT,
            headers=_parse_otlp_headers(settings.OTEL_EXPORTER_OTLP_HEADERS or ""),
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))
        logger.info(
            "otel_tracer_provider_created",
            endpoint=settings.OTEL_EXPORTER_OTLP_TRACES_ENDPOINT,
            service_name=settings.OTEL_SERVICE_NAME,
            environment=settings.OTEL_ENVIRONMENT,
        )
    else:
        logger.warning("otel_no_traces_endpoint_configured", message="traces will not be exported")

    return provider


def shutdown_tracer_provider() -> None:
    """Flush pending spans. Safe to call when no provider was created."""
    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        logger.info("otel_tracer_provider_shutdown")


def get_logger_provider() -> LoggerProvider | None:
    """
    Get or create the process LoggerProvider.

    Returns:
        LoggerProvider if OTEL is enabled, None otherwise
    """
    if not settings.OTEL_ENABLED:
        return None

    global _logger_provider  # noqa: PLW0603
    if _logger_provider is None:
        with _logger_provider_lock:
            if _logger_provider is None:  # Double-checked locking
                _logger_provider = _create_logger_provider()
    return _logger_provider


def _create_logger_provider() -> LoggerProvider:
    """
    Build a LoggerProvider with an OTLP/HTTP exporter when an endpoint is set.

    Unlike traces, the logs endpoint is optional in production: stdout logging
    works without it.
    """
    provider = LoggerProvider(resource=_build_resource())

    if settings.OTEL_EXPORTER_OTLP_LOGS_ENDPOINT:
        exporter = OTLPLogExporter(
            endpoint=settings.OTEL_EXPORTER_OTLP_LOGS_ENDPOINT,
            headers=_parse_otlp_headers(settings.OTEL_EXPORTER_OTLP_HEADERS or ""),
        )
        provider.add_log_record_processor(BatchLogRecordProcessor(exporter))
        logger.info(
            "otel_logger_provider_created",
            endpoint=settings.OTEL_EXPORTER_OTLP_LOGS_ENDPOINT,
            service_name=settings.OTEL_SERVICE_NAME,
            log_level=settings.OTEL_LOG_LEVEL,
        )
    else:
        logger.warning("otel_no_logs_endpoint_configured", message="logs will not be exported to OTLP")

    return provider


def shutdown_logger_provider() -> None:
    """Flush pending log records. Safe to call when no provider was created."""
    if _logger_provider is not None:
        _logger_provider.shutdown()  # type: ignore[no-untyped-call]
        logger.info("otel_logger_provider_shutdown")


def set_logger_provider() -> None:
    """Install the LoggerProvider globally (call after fork, in the lifespan)."""
    if provider := get_logger_provider():
        otel_set_logger_provider(provider)


@contextmanager
def service_span(
    name: str,
    service: str,
    kind: SpanKind = SpanKind.INTERNAL,
    **attributes: AttributeValue,
) -> Generator["Span"]:
    """Open a span around a service operation.

    The span ends with status OK when the block completes. When the block
    raises, the SDK records the exception and marks the span ERROR before the
    exception propagates.

    The tracer is looked up per call so it picks up the provider installed
    during application startup.

    Args:
        name: Span name (e.g., "routes.create_compound_route")
        service: Value for the peer.service attribute (e.g., "route-composition")
        kind: Span kind (default INTERNAL)
        **attributes: Additional span attributes

    Yields:
        Span: The active span for setting additional attributes

    Example:
        with service_span("routes.delete_route", "route-composition", **{"routes.route_id": 7}) as span:
            ...
            span.set_attribute("routes.is_compound", True)
    """
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(
        name,
        kind=kind,
        attributes={"peer.service": service, **attributes},
    ) as span:
        yield span
        span.set_status(Status(StatusCode.OK))


def get_current_trace_id() -> str | None:
    """
    Get the current OpenTelemetry trace id as 32 hex characters.

    Returns:
        The trace id, or None when no valid span is active
    """
    ctx = trace.get_current_span().get_span_context()
    if not ctx.is_valid or ctx.trace_id == 0:
        return None
    return format(ctx.trace_id, "032x")
