# backend/webwallet/middleware/request_logger.py
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from webwallet.logger import get_logger

log = get_logger(__name__)


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """One line per request: method, path, status, latency. Server errors log at ERROR."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            ms = (time.perf_counter() - start) * 1000
            status = getattr(response, "status_code", 500)
            client = request.client.host if request.client else "-"
            log_fn = log.error if status >= 500 else log.info
            log_fn("%s %s %s -> %s %.1fms", client, request.method, request.url.path, status, ms)
