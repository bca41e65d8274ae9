"""Request logging middleware.

One line per HTTP request with method, path, status, latency, the
authenticated principal (if the route has one) and a request ID. A caller
supplied X-Request-ID is kept so that a client retrying a Reserve can
correlate its attempts; otherwise a short one is generated. The id is put on
request.state so router handlers can include it in ApiResponse.

Log format:
    INFO [POST] /api/v1/bookings -> 201 (23ms) user=u_42 req_a1b2c3d4e5f6
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("spotlink.request")

_MAX_REQUEST_ID_LEN = 64


def _request_id(request: Request) -> str:
    inbound = request.headers.get("X-Request-ID", "").strip()
    if inbound and len(inbound) <= _MAX_REQUEST_ID_LEN and inbound.isprintable():
        return inbound
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = _request_id(request)

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "[%s] %s -> %d (%.0fms) user=%s %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            getattr(request.state, "principal_id", "-"),
            request.state.request_id,
        )
        response.headers["X-Request-ID"] = request.state.request_id
        return response
