from __future__ import annotations

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..observability.logging import get_logger


def _user_id(request: Request) -> str | None:
    principal = getattr(request.state, "user", None)
    return getattr(principal, "id", None) if principal else None


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One structured log line per request."""

    def __init__(self, app, *, exclude_paths: set[str] | None = None):
        super().__init__(app)
        self._exclude = exclude_paths or set()
        self._log = get_logger("access")

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in self._exclude:
            return await call_next(request)

        start = time.perf_counter()
        fields = {
            "http_method": request.method.upper(),
            "path": path,
            "client_ip": request.client.host if request.client else None,
        }
        try:
            response = await call_next(request)
        except Exception:
            self._log.exception(
                "request_error",
                duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
                user_id=_user_id(request),
                **fields,
            )
            raise
        self._log.info(
            "request",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
            user_id=_user_id(request),
            **fields,
        )
        return response
