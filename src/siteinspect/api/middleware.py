"""
Request correlation middleware.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from siteinspect.core.logging_config import add_log_context

logger = logging.getLogger(__name__)


class RequestCorrelationMiddleware(BaseHTTPMiddleware):
    """
    Assign every request a correlation id and bind it to the log context.

    The id is taken from the incoming header when present, otherwise
    generated. It is stored on ``request.state.request_id``, echoed back in
    the response header, and carried by every record logged while the request
    is handled, together with the method and path.
    """

    def __init__(self, app, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = request_id

        with add_log_context(
            request_id=request_id,
            http_method=request.method,
            request_path=request.url.path,
        ):
            logger.info(f"{request.method} {request.url.path} started")
            start_time = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception:
                duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
                logger.error(
                    f"{request.method} {request.url.path} failed",
                    exc_info=True,
                    extra={"duration_ms": duration_ms},
                )
                raise

            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"in {duration_ms:.2f}ms",
                extra={"duration_ms": duration_ms, "status_code": response.status_code},
            )

        response.headers[self.header_name] = request_id
        return response
