from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...auth.claims import ClaimsError, ClaimsService
from ...observability.logging import get_logger
from .roles import APPROVAL_APPROVED, ROLE_ADMIN, normalize_role

log = get_logger("identity")


@dataclass(frozen=True, slots=True)
class Principal:
    """
    The authenticated caller, as embedded in the token at login.

    This is a snapshot: role or approval changes made after issuance are not
    visible here until the user logs in again.
    """

    id: str
    email: str
    name: str
    role: str
    approval_status: str

    @property
    def is_approved(self) -> bool:
        return self.approval_status == APPROVAL_APPROVED


def effective_approval_status(*, role: str, approval_status: str | None) -> str:
    # Admins are seeded out-of-band and always count as approved.
    if normalize_role(role) == ROLE_ADMIN:
        return APPROVAL_APPROVED
    return str(approval_status or "")


def claims_for_user(user: dict[str, Any]) -> dict[str, Any]:
    """Token claims for a user record (API shape from the users repository)."""
    role = str(user.get("role") or "")
    return {
        "id": str(user.get("id") or ""),
        "email": str(user.get("email") or ""),
        "name": str(user.get("name") or ""),
        "role": role,
        "approval_status": effective_approval_status(
            role=role, approval_status=user.get("approvalStatus")
        ),
    }


def principal_from_claims(claims: dict[str, Any]) -> Principal | None:
    uid = str(claims.get("id") or "").strip()
    role = normalize_role(claims.get("role"))
    if not uid or not role:
        return None
    return Principal(
        id=uid,
        email=str(claims.get("email") or ""),
        name=str(claims.get("name") or ""),
        role=role,
        approval_status=str(claims.get("approval_status") or ""),
    )


def bearer_token(authorization: str | None) -> str | None:
    parts = str(authorization or "").split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def resolve(credential: str | None, *, claims_service: ClaimsService) -> Principal | None:
    """
    Verify a bearer credential and return the embedded principal.

    Absence of identity is not an error here: a missing, malformed, badly
    signed or expired token resolves to None.
    """
    if not credential:
        return None
    try:
        claims = claims_service.verify(credential)
    except ClaimsError as e:
        log.info("credential_rejected", reason=str(e))
        return None
    return principal_from_claims(claims)
