# ===== booking_api/api/middleware/logging_middleware.py =====
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
import logging
import time
import uuid

logger = logging.getLogger("booking_api.requests")


class APIRequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log every API request.
    Tracks method, path, status and response time; tags each request with an id.
    """

    async def dispatch(self, request: Request, call_next):
        # Only log API routes (skip docs, root)
        if not request.url.path.startswith("/api/v1/"):
            return await call_next(request)

        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception:
            response_time_ms = int((time.time() - start_time) * 1000)
            logger.exception(
                f"{request.method} {request.url.path} failed after {response_time_ms}ms [{request_id}]"
            )
            raise

        response_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"in {response_time_ms}ms [{request_id}]"
        )
        response.headers["X-Request-ID"] = request_id
        return response
