"""Request logging middleware for the OpenWRT Metrics Exporter"""
import time
from typing import Iterable
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp
from logging_config import get_logger


logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request; paths in ``quiet_paths`` are logged at debug level"""

    def __init__(self, app: ASGIApp, quiet_paths: Iterable[str] = ()):
        super().__init__(app)
        self.quiet_paths = frozenset(quiet_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.time()
        path = request.url.path
        client_ip = request.client.host if request.client else None

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "HTTP request failed",
                method=request.method,
                path=path,
                error=str(e),
                process_time_seconds=round(time.time() - start_time, 3),
                client_ip=client_ip,
                event_type="http_request_error",
                exc_info=True
            )
            raise

        process_time = round(time.time() - start_time, 3)
        log = logger.debug if path in self.quiet_paths else logger.info
        log(
            "HTTP request completed",
            method=request.method,
            path=path,
            status_code=response.status_code,
            process_time_seconds=process_time,
            client_ip=client_ip,
            event_type="http_request_complete"
        )

        response.headers["X-Process-Time"] = str(process_time)
        return response
