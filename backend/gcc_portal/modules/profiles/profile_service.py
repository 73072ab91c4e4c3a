from __future__ import annotations

from typing import Any

from ...db.dynamodb.errors import DdbConflict
from ...db.dynamodb.table import DynamoTable
from ...errors import NotFound
from ...observability.logging import get_logger
from ...repositories import profiles_repo, users_repo
from ..identity.principal import Principal
from ..identity.roles import APPROVAL_APPROVED, ROLE_GCC, ROLE_STARTUP
from ..search.ranking import rank_startups

log = get_logger("profiles")

MSG_PROFILE_NOT_FOUND = "Profile not found"

# Fields shown in the GCC startup directory.
_DIRECTORY_PROFILE_FIELDS = (
    "companyName",
    "industry",
    "solutionDescription",
    "website",
    "location",
    "teamSize",
    "primaryOfferingType",
)


def own_profile(*, table: DynamoTable, principal: Principal) -> dict[str, Any] | None:
    """The caller's profile by role; admins have none."""
    if principal.role not in (ROLE_GCC, ROLE_STARTUP):
        return None
    return profiles_repo.get_profile(table=table, user_id=principal.id)


def get_profile(*, table: DynamoTable, principal: Principal) -> dict[str, Any]:
    profile = own_profile(table=table, principal=principal)
    if not profile:
        raise NotFound(MSG_PROFILE_NOT_FOUND)
    return profile


def update_profile(*, table: DynamoTable, principal: Principal, updates: dict[str, Any]) -> dict[str, Any]:
    changes = dict(updates)
    if principal.role == ROLE_STARTUP:
        # Any startup save answers an outstanding reverification request.
        changes["reverificationRequired"] = False
    else:
        changes.pop("reverificationRequired", None)
    try:
        profile = profiles_repo.update_profile(
            table=table, user_id=principal.id, profile_type=principal.role, updates=changes
        )
    except DdbConflict as e:
        raise NotFound(MSG_PROFILE_NOT_FOUND) from e
    log.info("profile_updated", user_id=principal.id, profile_type=principal.role)
    return profile


def _matches_industry(row: dict[str, Any], industry: str) -> bool:
    needle = industry.lower()
    return any(
        needle in str(row.get(f) or "").lower() for f in ("industry", "primaryOfferingType")
    )


def startup_directory(
    *,
    table: DynamoTable,
    search: str | None = None,
    industry: str | None = None,
) -> list[dict[str, Any]]:
    """
    Approved startups joined with their profiles, ranked by relevance to
    `search` (company name, then solution, then contact name, then industry).
    """
    users = users_repo.list_users(table=table, role=ROLE_STARTUP, approval_status=APPROVAL_APPROVED)
    profiles = profiles_repo.profiles_by_user(table=table, profile_type=ROLE_STARTUP)

    rows: list[dict[str, Any]] = []
    for u in users:
        p = profiles.get(str(u["id"]))
        if not p:
            continue
        row = {"id": u["id"], "name": u.get("name"), "email": u.get("email")}
        row.update({f: p.get(f) for f in _DIRECTORY_PROFILE_FIELDS})
        rows.append(row)

    ind = str(industry or "").strip()
    if ind:
        rows = [r for r in rows if _matches_industry(r, ind)]
    return rank_startups(rows, search)
