import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class HTTPLogMiddleware(BaseHTTPMiddleware):
    """Debug log of each request with its duration and session prefix."""

    def __init__(self, app, logger_name: str = "portal.http"):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        method, path = request.method, request.url.path
        # never log a full session id
        session = (request.headers.get("x-session-id") or "-")[:6]
        self._logger.debug("http.request start method=%s path=%s session=%s", method, path, session)
        try:
            response: Response = await call_next(request)
        except Exception as e:
            dur_ms = int((time.perf_counter() - start) * 1000)
            self._logger.warning(
                "http.request error method=%s path=%s session=%s dur_ms=%s err=%r", method, path, session, dur_ms, e
            )
            raise
        dur_ms = int((time.perf_counter() - start) * 1000)
        self._logger.debug(
            "http.request end method=%s path=%s session=%s status=%s dur_ms=%s",
            method,
            path,
            session,
            response.status_code,
            dur_ms,
        )
        return response
