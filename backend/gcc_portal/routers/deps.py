from __future__ import annotations

from typing import Callable

from fastapi import Depends, Request

from ..auth.claims import ClaimsService
from ..auth.passwords import PasswordHasher
from ..db.dynamodb.table import DynamoTable
from ..modules.identity import Principal, require_approved, require_authenticated, require_role
from ..modules.identity.roles import ROLE_ADMIN, ROLE_GCC, ROLE_STARTUP

# Collaborators are built once in create_app() and kept on app.state.


def get_table(request: Request) -> DynamoTable:
    return request.app.state.table


def get_claims(request: Request) -> ClaimsService:
    return request.app.state.claims


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def current_principal(request: Request) -> Principal | None:
    return getattr(request.state, "user", None)


def authenticated(principal: Principal | None = Depends(current_principal)) -> Principal:
    return require_authenticated(principal)


def approved(principal: Principal | None = Depends(current_principal)) -> Principal:
    return require_approved(principal)


def role_guard(*roles: str) -> Callable[..., Principal]:
    allowed = frozenset(roles)

    def _guard(principal: Principal | None = Depends(current_principal)) -> Principal:
        return require_role(principal, allowed)

    return _guard


gcc_user = role_guard(ROLE_GCC)
startup_user = role_guard(ROLE_STARTUP)
admin_user = role_guard(ROLE_ADMIN)
