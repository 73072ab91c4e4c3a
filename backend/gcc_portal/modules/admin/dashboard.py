from __future__ import annotations

from typing import Any

from ...db.dynamodb.table import DynamoTable
from ...repositories import interests_repo, requirements_repo, users_repo
from ..identity.roles import APPROVAL_PENDING

DEFAULT_ACTIVITY_LIMIT = 50
MAX_ACTIVITY_LIMIT = 100


def clamp_activity_limit(limit: Any) -> int:
    """Positive integers are capped at 100; anything else means the default."""
    try:
        n = int(limit)
    except (TypeError, ValueError):
        return DEFAULT_ACTIVITY_LIMIT
    if n <= 0:
        return DEFAULT_ACTIVITY_LIMIT
    return min(n, MAX_ACTIVITY_LIMIT)


def stats(*, table: DynamoTable) -> dict[str, int]:
    users = users_repo.list_users(table=table)
    reqs = requirements_repo.list_requirements(table=table)
    return {
        "totalUsers": len(users),
        "pendingApprovals": sum(1 for u in users if u.get("approvalStatus") == APPROVAL_PENDING),
        "pendingRequirementApprovals": sum(
            1 for r in reqs if r.get("approvalStatus") == requirements_repo.APPROVAL_PENDING
        ),
        "openRequirements": sum(
            1
            for r in reqs
            if r.get("status") == requirements_repo.STATUS_OPEN
            and r.get("approvalStatus") == requirements_repo.APPROVAL_APPROVED
        ),
        "pendingInterests": len(
            interests_repo.list_interests(table=table, status=interests_repo.INTEREST_PENDING)
        ),
    }


def _user_lookup(table: DynamoTable):
    cache: dict[str, dict[str, Any]] = {}

    def get(user_id: str | None) -> dict[str, Any]:
        uid = str(user_id or "")
        if not uid:
            return {}
        if uid not in cache:
            cache[uid] = users_repo.get_user(table=table, user_id=uid) or {}
        return cache[uid]

    return get


def activities(*, table: DynamoTable, limit: Any = None) -> dict[str, list[dict[str, Any]]]:
    n = clamp_activity_limit(limit)
    user = _user_lookup(table)

    all_reqs = requirements_repo.list_requirements(table=table)
    recent_reqs = all_reqs[:n]
    titles = {r["id"]: r.get("title") for r in all_reqs}
    recent_eois = interests_repo.list_interests(table=table)[:n]

    return {
        "requirements": [
            {
                "id": r["id"],
                "title": r.get("title"),
                "category": r.get("category"),
                "status": r.get("status"),
                "createdAt": r.get("createdAt"),
                "gccName": user(r.get("ownerUserId")).get("name"),
                "gccEmail": user(r.get("ownerUserId")).get("email"),
            }
            for r in recent_reqs
        ],
        "expressionsOfInterest": [
            {
                "id": e["id"],
                "message": e.get("message"),
                "status": e.get("status"),
                "createdAt": e.get("createdAt"),
                "requirementTitle": titles.get(e.get("requirementId")),
                "startupName": user(e.get("startupUserId")).get("name"),
                "startupEmail": user(e.get("startupUserId")).get("email"),
            }
            for e in recent_eois
        ],
    }


def active_projects(*, table: DynamoTable) -> list[dict[str, Any]]:
    user = _user_lookup(table)
    reqs = requirements_repo.list_requirements(
        table=table,
        status=(requirements_repo.STATUS_OPEN, requirements_repo.STATUS_IN_PROGRESS),
    )
    out = [
        {
            "id": r["id"],
            "title": r.get("title"),
            "category": r.get("category"),
            "status": r.get("status"),
            "createdAt": r.get("createdAt"),
            "updatedAt": r.get("updatedAt"),
            "gccName": user(r.get("ownerUserId")).get("name"),
            "gccEmail": user(r.get("ownerUserId")).get("email"),
            "interestCount": interests_repo.count_for_requirement(
                table=table, requirement_id=r["id"]
            ),
        }
        for r in reqs
    ]
    out.sort(key=lambda p: str(p.get("updatedAt") or ""), reverse=True)
    return out
