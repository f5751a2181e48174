"""Access logging middleware using structlog with OTEL trace correlation."""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class AccessLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log one structured ``http_request`` event per request.

    A request id (taken from the incoming ``X-Request-ID`` header, or freshly
    generated) is bound into structlog's contextvars for the lifetime of the
    request, so every log line emitted by the route composition service
    carries it. The id is echoed back on the response.

    Log fields:
        - method, path, status_code
        - duration_ms: Request duration in milliseconds
        - client_ip: Direct peer address
        - forwarded_for: First X-Forwarded-For hop, when present
        - request_id, trace_id/span_id: added by contextvars and the OTEL processor
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process request and log access information."""
        start_time = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

        client_ip = request.client.host if request.client else "unknown"
        forwarded_for = None
        if xff_header := request.headers.get("x-forwarded-for"):
            forwarded_for = xff_header.split(",")[0].strip()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            log_kwargs: dict[str, str | int | float | None] = {
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            }
            if forwarded_for:
                log_kwargs["forwarded_for"] = forwarded_for

            logger.info("http_request", **log_kwargs)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
