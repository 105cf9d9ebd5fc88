"""Request correlation and access logging for the metrics API.

Every response carries an `X-Request-ID` header (the caller's, or a fresh
UUID4) and the same id is bound into structlog context, so problem bodies
and log lines for one request share it. Health checks from the orchestrator
arrive every few seconds and are logged at debug level.
"""

import time
import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from comms_metrics.core.logging import get_logger, request_id_ctx

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

QUIET_PATHS = frozenset({"/health", "/health/ready"})


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id and log the start and outcome of each request."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Run the request with its id bound to the logging context.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware/handler in chain.

        Returns:
            The handler's response with the request id header set.
        """
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)
        path = request.url.path
        log = logger.debug if path in QUIET_PATHS else logger.info
        start = time.perf_counter()

        try:
            log(
                "http.request_started",
                method=request.method,
                path=path,
                query=request.url.query or None,
            )

            response = await call_next(request)

            log(
                "http.request_completed",
                method=request.method,
                path=path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )

            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_ctx.reset(token)
