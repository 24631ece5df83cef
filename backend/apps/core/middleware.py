"""
Core middleware.
"""

import time
import uuid
from collections.abc import Callable

from django.http import HttpRequest, HttpResponse

from apps.core.logging import bind_contextvars, clear_contextvars, get_logger
from apps.core.utils import get_client_ip

logger = get_logger(__name__)


class RequestContextMiddleware:
    """
    Binds per-request logging context.

    Uses the inbound X-Request-ID as trace_id when present, echoes it back
    on the response, and clears context afterwards so nothing leaks between
    requests served by the same worker.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        trace_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        clear_contextvars()
        bind_contextvars(
            trace_id=trace_id,
            **{
                "http.method": request.method,
                "http.url_details.path": request.path,
                "network.client.ip": get_client_ip(request),
            },
        )
        start = time.monotonic()
        try:
            response = self.get_response(request)
            logger.debug(
                "request_finished",
                duration_ms=(time.monotonic() - start) * 1000,
                **{"http.status_code": response.status_code},
            )
            response["X-Request-ID"] = trace_id
            return response
        finally:
            clear_contextvars()
