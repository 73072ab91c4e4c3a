from __future__ import annotations

from typing import Iterable

from ...errors import Forbidden, Unauthorized
from .principal import Principal

MSG_AUTH_REQUIRED = "Authentication required"
MSG_PENDING_APPROVAL = "Account is pending admin approval. You cannot access the portal until approved."
MSG_NOT_APPROVED = "Account is pending admin approval."
MSG_INSUFFICIENT_PERMISSIONS = "Insufficient permissions"


# Each guard is a pure predicate over the principal: it returns the principal
# to continue, or raises a terminal denial. None of them touch storage.


def require_authenticated(principal: Principal | None) -> Principal:
    if principal is None:
        raise Unauthorized(MSG_AUTH_REQUIRED)
    return principal


def require_approved(principal: Principal | None) -> Principal:
    p = require_authenticated(principal)
    if not p.is_approved:
        raise Forbidden(MSG_PENDING_APPROVAL, extensions={"code": "PENDING_APPROVAL"})
    return p


def require_role(principal: Principal | None, allowed: Iterable[str]) -> Principal:
    # Re-checks authentication and approval so it is safe on its own.
    p = require_authenticated(principal)
    if not p.is_approved:
        raise Forbidden(MSG_NOT_APPROVED, extensions={"code": "PENDING_APPROVAL"})
    if p.role not in set(allowed):
        raise Forbidden(MSG_INSUFFICIENT_PERMISSIONS)
    return p
