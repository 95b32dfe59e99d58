import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("gradekeeper.access")

REQUEST_ID_HEADER = "X-Request-Id"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    One access line per request.

    The line carries a request id (taken from the caller's ``X-Request-Id``
    or generated), the acting user, and the code of the engine error that
    rejected the request, if any. The id is echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.monotonic()

        response = await call_next(request)

        duration_ms = (time.monotonic() - start) * 1000
        logger.info(
            "[%s] %s %s -> %s (%.1fms) user=%s error=%s",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request.headers.get("x-user-id", "-"),
            getattr(request.state, "error_code", "-"),
        )
        response.headers[REQUEST_ID_HEADER] = request_id

        return response
