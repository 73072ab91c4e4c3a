from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..modules.identity.principal import bearer_token, resolve


class IdentityMiddleware(BaseHTTPMiddleware):
    """
    Resolve the bearer credential into request.state.user (Principal or None).

    Never denies: guards on the route groups decide what a missing or
    unapproved principal may do.
    """

    async def dispatch(self, request: Request, call_next):
        claims_service = request.app.state.claims
        token = bearer_token(request.headers.get("authorization"))
        request.state.user = resolve(token, claims_service=claims_service)
        return await call_next(request)
