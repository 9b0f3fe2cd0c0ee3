"""HTTP middleware recording request metrics through the SDK"""
import time
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from logging_config import get_logger


logger = get_logger(__name__)

UNMATCHED_ROUTE = "unmatched"


def _route_template(request: Request) -> str:
    """Path template of the matched route, so label sets stay bounded"""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    """Counts requests and records their latency, labelled by method, route template and status"""

    def __init__(self, app, request_counter, request_duration, log_requests: bool = False):
        super().__init__(app)
        self.request_counter = request_counter
        self.request_duration = request_duration
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000

        labels = {
            "method": request.method,
            "route": _route_template(request),
            "status_code": str(response.status_code),
        }
        self.request_counter.add(1, labels)
        self.request_duration.record(duration_ms, labels)

        if self.log_requests:
            logger.info(
                "Request processed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                client_ip=request.client.host if request.client else None,
                event_type="http_request"
            )

        return response
