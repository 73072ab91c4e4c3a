from __future__ import annotations

from typing import Any

from ...db.dynamodb.errors import DdbConflict
from ...db.dynamodb.table import DynamoTable
from ...errors import Conflict, NotFound
from ...observability.logging import get_logger
from ...repositories import interests_repo, profiles_repo, requirements_repo, users_repo
from ..identity.roles import ROLE_STARTUP
from ..requirements.lifecycle import is_active_deal

log = get_logger("interests")

MSG_NOT_OPEN = "Requirement not found or not open"
MSG_ALREADY_PROCESSED = "Interest not found or already processed"

DECISIONS = (interests_repo.INTEREST_ACCEPTED, interests_repo.INTEREST_REJECTED)


def submit_interest(
    *,
    table: DynamoTable,
    requirement_id: str,
    startup_user_id: str,
    payload: dict[str, Any],
) -> dict[str, Any]:
    try:
        eoi = interests_repo.submit_interest(
            table=table,
            requirement_id=requirement_id,
            startup_user_id=startup_user_id,
            payload=payload,
        )
    except DdbConflict as e:
        raise NotFound(MSG_NOT_OPEN) from e
    log.info("interest_submitted", requirement_id=requirement_id, startup_user_id=startup_user_id)
    return eoi


def decide_interest(
    *,
    table: DynamoTable,
    owner_user_id: str,
    requirement_id: str,
    startup_user_id: str,
    decision: str,
) -> dict[str, Any]:
    if decision not in DECISIONS:
        raise ValueError(f"unsupported decision: {decision}")
    try:
        eoi = interests_repo.decide_interest(
            table=table,
            requirement_id=requirement_id,
            startup_user_id=startup_user_id,
            owner_user_id=owner_user_id,
            to_status=decision,
        )
    except DdbConflict as e:
        # Item 0 is the ownership check on the requirement.
        if e.cancellation_codes and e.cancellation_codes[0] == "ConditionalCheckFailed":
            raise NotFound("Requirement not found") from e
        raise Conflict(MSG_ALREADY_PROCESSED) from e
    log.info(
        "interest_decided",
        requirement_id=requirement_id,
        startup_user_id=startup_user_id,
        status=decision,
    )
    return eoi


def my_interests(*, table: DynamoTable, startup_user_id: str) -> list[dict[str, Any]]:
    out = []
    for eoi in interests_repo.list_interests(table=table, startup_user_id=startup_user_id):
        req = requirements_repo.get_requirement(table=table, requirement_id=eoi["requirementId"])
        if not req:
            continue
        out.append(
            {
                **eoi,
                "requirementTitle": req.get("title"),
                "category": req.get("category"),
                "anonymizedId": req.get("anonymizedId"),
            }
        )
    return out


def received_interests(*, table: DynamoTable, owner_user_id: str) -> list[dict[str, Any]]:
    """EOIs on the owner's requirements, newest first."""
    own = {
        r["id"]: r
        for r in requirements_repo.list_requirements(table=table, owner_user_id=owner_user_id)
    }
    if not own:
        return []
    profiles = profiles_repo.profiles_by_user(table=table, profile_type=ROLE_STARTUP)
    users: dict[str, dict[str, Any]] = {}
    out = []
    for eoi in interests_repo.list_interests(table=table):
        req = own.get(eoi.get("requirementId"))
        if not req:
            continue
        sid = str(eoi.get("startupUserId") or "")
        if sid not in users:
            users[sid] = users_repo.get_user(table=table, user_id=sid) or {}
        out.append(
            {
                "id": eoi["id"],
                "requirementId": req["id"],
                "startupUserId": sid,
                "interestStatus": eoi.get("status"),
                "createdAt": eoi.get("createdAt"),
                "requirementTitle": req.get("title"),
                "category": req.get("category"),
                "requirementStatus": req.get("status"),
                "startupName": users[sid].get("name"),
                "startupEmail": users[sid].get("email"),
                "startupCompany": (profiles.get(sid) or {}).get("companyName"),
            }
        )
    return out


def active_deals(*, table: DynamoTable, owner_user_id: str) -> list[dict[str, Any]]:
    out = []
    for r in requirements_repo.list_requirements(table=table, owner_user_id=owner_user_id):
        n = interests_repo.count_for_requirement(
            table=table, requirement_id=r["id"], status=interests_repo.INTEREST_ACCEPTED
        )
        if not is_active_deal(r, n):
            continue
        out.append(
            {
                "id": r["id"],
                "title": r.get("title"),
                "category": r.get("category"),
                "status": r.get("status"),
                "updatedAt": r.get("updatedAt"),
                "acceptedCount": n,
            }
        )
    out.sort(key=lambda d: str(d.get("updatedAt") or ""), reverse=True)
    return out
