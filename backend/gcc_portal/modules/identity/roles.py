from __future__ import annotations

from typing import Any


ROLE_ADMIN = "ADMIN"
ROLE_GCC = "GCC"
ROLE_STARTUP = "STARTUP"

ALL_ROLES = (ROLE_ADMIN, ROLE_GCC, ROLE_STARTUP)
# Roles that self-register and go through account approval.
REGISTRANT_ROLES = (ROLE_GCC, ROLE_STARTUP)

APPROVAL_PENDING = "PENDING"
APPROVAL_APPROVED = "APPROVED"
APPROVAL_REJECTED = "REJECTED"


def normalize_role(value: Any) -> str | None:
    """
    Canonical upper-case role, or None for anything unknown.
    Accepts common variants ("gcc", "Start-up", "admin").
    """
    s = str(value or "").strip().upper().replace("-", "").replace("_", "")
    if s in ALL_ROLES:
        return s
    return None
