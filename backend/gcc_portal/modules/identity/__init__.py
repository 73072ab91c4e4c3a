from __future__ import annotations

from .access import require_approved, require_authenticated, require_role
from .principal import Principal, resolve
from .roles import ROLE_ADMIN, ROLE_GCC, ROLE_STARTUP

__all__ = [
    "Principal",
    "ROLE_ADMIN",
    "ROLE_GCC",
    "ROLE_STARTUP",
    "require_approved",
    "require_authenticated",
    "require_role",
    "resolve",
]
