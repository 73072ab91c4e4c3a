from __future__ import annotations

import time
from typing import Any

from jose import JWTError, jwt

_ALGORITHM = "HS256"


class ClaimsError(Exception):
    """Token missing, malformed, badly signed or expired."""


class ClaimsService:
    """
    Signed-claims service: issue(claims, ttl) -> token, verify(token) -> claims.

    Tokens are HS256 JWTs carrying the caller-supplied claims plus iat/exp.
    """

    def __init__(self, *, secret: str, default_ttl_seconds: int):
        if not secret:
            raise ValueError("secret is required")
        self._secret = secret
        self.default_ttl_seconds = int(default_ttl_seconds)

    def issue(self, claims: dict[str, Any], ttl_seconds: int | None = None) -> str:
        now = int(time.time())
        ttl = int(ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds)
        payload = {**claims, "iat": now, "exp": now + ttl}
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> dict[str, Any]:
        if not token:
            raise ClaimsError("missing token")
        try:
            # jwt.decode verifies the signature and exp.
            claims = jwt.decode(token, self._secret, algorithms=[_ALGORITHM])
        except JWTError as e:
            raise ClaimsError(str(e)) from e
        if not isinstance(claims, dict):
            raise ClaimsError("invalid claims")
        return claims
