from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..observability.logging import get_logger
from ..problem_details import problem_response

LOGIN_PATH = "/api/auth/login"
_WINDOW_S = 60.0


@dataclass
class _Bucket:
    window_start: float
    count: int


def client_ip(request: Request, trusted_proxies: int = 0) -> str:
    """
    Address to throttle on. X-Forwarded-For is only honoured behind
    `trusted_proxies` proxies we run: each appends the peer it saw, so the
    client is that many hops from the right. Anything further left is
    client-supplied and ignored.
    """
    ip = ""
    if trusted_proxies > 0:
        xff = str(request.headers.get("x-forwarded-for") or "")
        hops = [h.strip() for h in xff.split(",") if h.strip()]
        if len(hops) >= trusted_proxies:
            ip = hops[-trusted_proxies]
    if not ip and request.client:
        ip = request.client.host or ""
    return ip or "unknown"


class LoginRateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed-window login throttle per client IP.

    In-memory per process: best effort against password guessing, not a
    global quota.
    """

    def __init__(self, app, *, rpm: int, trusted_proxies: int = 0):
        super().__init__(app)
        self.rpm = max(1, min(6000, int(rpm)))
        self.trusted_proxies = max(0, int(trusted_proxies))
        self._buckets: dict[str, _Bucket] = {}
        self._last_prune = 0.0
        self._lock = threading.Lock()
        self._log = get_logger("login_rate_limit")

    def _hit(self, key: str, now: float) -> int | None:
        """Count one attempt; returns Retry-After seconds when over the limit."""
        with self._lock:
            if now - self._last_prune >= _WINDOW_S:
                self._prune(now)
            b = self._buckets.get(key)
            if not b or (now - b.window_start) >= _WINDOW_S:
                b = _Bucket(window_start=now, count=0)
                self._buckets[key] = b
            b.count += 1
            if b.count <= self.rpm:
                return None
            return int(max(1.0, _WINDOW_S - (now - b.window_start)))

    def _prune(self, now: float) -> None:
        # Caller holds the lock.
        expired = [k for k, b in self._buckets.items() if now - b.window_start >= _WINDOW_S]
        for k in expired:
            del self._buckets[k]
        self._last_prune = now

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path != LOGIN_PATH or request.method.upper() != "POST":
            return await call_next(request)

        ip = client_ip(request, self.trusted_proxies)
        retry_after = self._hit(ip, time.time())
        if retry_after is None:
            return await call_next(request)

        self._log.info("login_rate_limited", client_ip=ip, retry_after=retry_after)
        return problem_response(
            request=request,
            status_code=429,
            detail="Too many login attempts. Try again later.",
            headers={"Retry-After": str(retry_after)},
        )
