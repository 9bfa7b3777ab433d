"""
Access logging middleware.

One line per HTTP request: method, path, status, latency and, for
per-meeting routes, the bot id. Webhook deliveries arrive several times a
second during a live call, so they go to DEBUG instead of INFO.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("meetpulse.access")

_QUIET_PREFIXES = ("/api/recall/webhook",)
TIMING_HEADER = "X-Response-Time-Ms"


def _level_for(path: str) -> int:
    return logging.DEBUG if path.startswith(_QUIET_PREFIXES) else logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request and stamp the response with its handling time."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
            if response is not None:
                response.headers[TIMING_HEADER] = f"{elapsed_ms:.2f}"
            status_code = response.status_code if response is not None else 500
            # path_params is filled in by the router once a route matched
            bot_id = request.scope.get("path_params", {}).get("bot_id")
            logger.log(
                _level_for(request.url.path),
                "%s %s -> %d (%.2fms)%s",
                request.method,
                request.url.path,
                status_code,
                elapsed_ms,
                f" bot={bot_id}" if bot_id else "",
            )
