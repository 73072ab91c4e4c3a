from __future__ import annotations

from .access_log import AccessLogMiddleware
from .identity import IdentityMiddleware
from .login_rate_limit import LoginRateLimitMiddleware
from .request_context import RequestContextMiddleware

__all__ = [
    "AccessLogMiddleware",
    "IdentityMiddleware",
    "LoginRateLimitMiddleware",
    "RequestContextMiddleware",
]
