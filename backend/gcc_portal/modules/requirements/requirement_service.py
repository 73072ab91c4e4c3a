from __future__ import annotations

from typing import Any

from ...db.dynamodb.errors import DdbConflict
from ...db.dynamodb.table import DynamoTable
from ...errors import Conflict, NotFound
from ...observability.logging import get_logger
from ...repositories import interests_repo, requirements_repo, users_repo
from ..search.ranking import rank_requirements
from .lifecycle import is_publicly_visible, moderation_transition, normalize_remarks

log = get_logger("requirements")

MSG_NOT_FOUND = "Requirement not found"
MSG_ALREADY_PROCESSED = "Requirement not found or already processed"


def with_interest_count(table: DynamoTable, req: dict[str, Any]) -> dict[str, Any]:
    count = interests_repo.count_for_requirement(table=table, requirement_id=str(req["id"]))
    return {**req, "interestCount": count}


# --- owner (GCC) ---


def create_requirement(*, table: DynamoTable, owner_user_id: str, data: dict[str, Any]) -> dict[str, Any]:
    req = requirements_repo.create_requirement(table=table, owner_user_id=owner_user_id, fields=data)
    log.info("requirement_created", requirement_id=req["id"], owner_user_id=owner_user_id)
    return req


def list_own(*, table: DynamoTable, owner_user_id: str) -> list[dict[str, Any]]:
    reqs = requirements_repo.list_requirements(table=table, owner_user_id=owner_user_id)
    return [with_interest_count(table, r) for r in reqs]


def _owned(table: DynamoTable, owner_user_id: str, requirement_id: str) -> dict[str, Any]:
    req = requirements_repo.get_requirement(table=table, requirement_id=requirement_id)
    # Not owned is reported exactly like not found.
    if not req or req.get("ownerUserId") != owner_user_id:
        raise NotFound(MSG_NOT_FOUND)
    return req


def get_own_detail(*, table: DynamoTable, owner_user_id: str, requirement_id: str) -> dict[str, Any]:
    req = _owned(table, owner_user_id, requirement_id)
    applications = []
    for eoi in interests_repo.list_for_requirement(table=table, requirement_id=requirement_id):
        startup = users_repo.get_user(table=table, user_id=eoi["startupUserId"]) or {}
        applications.append(
            {**eoi, "startupName": startup.get("name"), "startupEmail": startup.get("email")}
        )
    return {**req, "applications": applications}


def update_requirement(
    *,
    table: DynamoTable,
    owner_user_id: str,
    requirement_id: str,
    updates: dict[str, Any],
    resubmit: bool = False,
) -> dict[str, Any]:
    """
    COALESCE edit by the owner. With resubmit=True and the requirement
    SENT_BACK, the same write returns it to PENDING_APPROVAL; in any other
    state the flag is ignored and the edit is applied as usual.
    """
    if resubmit:
        try:
            req = requirements_repo.update_requirement(
                table=table,
                requirement_id=requirement_id,
                owner_user_id=owner_user_id,
                updates=updates,
                resubmit=True,
            )
        except DdbConflict:
            log.info("requirement_resubmit_not_applicable", requirement_id=requirement_id)
        else:
            log.info("requirement_resubmitted", requirement_id=requirement_id)
            return req

    try:
        req = requirements_repo.update_requirement(
            table=table,
            requirement_id=requirement_id,
            owner_user_id=owner_user_id,
            updates=updates,
        )
    except DdbConflict as e:
        raise NotFound(MSG_NOT_FOUND) from e
    log.info("requirement_updated", requirement_id=requirement_id)
    return req


def delete_requirement(*, table: DynamoTable, owner_user_id: str, requirement_id: str) -> None:
    """
    Close, drop the EOIs, then delete the requirement itself. The parent goes
    last so a retry after a partial failure finishes the cascade.
    """
    _owned(table, owner_user_id, requirement_id)
    try:
        requirements_repo.close_requirement(
            table=table, requirement_id=requirement_id, owner_user_id=owner_user_id
        )
        removed = table.batch_delete(
            keys=interests_repo.keys_for_requirement(table=table, requirement_id=requirement_id)
        )
        requirements_repo.delete_requirement(
            table=table, requirement_id=requirement_id, owner_user_id=owner_user_id
        )
    except DdbConflict as e:
        raise NotFound(MSG_NOT_FOUND) from e
    log.info("requirement_deleted", requirement_id=requirement_id, interests_removed=removed)


# --- public ---


def public_list(
    *,
    table: DynamoTable,
    category: str | None = None,
    search: str | None = None,
) -> list[dict[str, Any]]:
    reqs = requirements_repo.list_requirements(
        table=table, status=requirements_repo.STATUS_OPEN, category=category or None
    )
    rows = [with_interest_count(table, requirements_repo.public_view(r)) for r in reqs]
    return rank_requirements(rows, search)


def public_detail(*, table: DynamoTable, requirement_id: str) -> dict[str, Any]:
    req = requirements_repo.get_requirement(table=table, requirement_id=requirement_id)
    if not req or not is_publicly_visible(req):
        raise NotFound(MSG_NOT_FOUND)
    return with_interest_count(table, requirements_repo.public_view(req))


# --- moderation (admin) ---


def moderation_queue(*, table: DynamoTable) -> list[dict[str, Any]]:
    reqs = requirements_repo.list_requirements(
        table=table, approval_status=requirements_repo.APPROVAL_PENDING, oldest_first=True
    )
    owners: dict[str, dict[str, Any]] = {}
    out = []
    for r in reqs:
        oid = str(r.get("ownerUserId") or "")
        if oid and oid not in owners:
            owners[oid] = users_repo.get_user(table=table, user_id=oid) or {}
        owner = owners.get(oid) or {}
        out.append({**r, "gccName": owner.get("name"), "gccEmail": owner.get("email")})
    return out


def moderate(
    *,
    table: DynamoTable,
    requirement_id: str,
    action: str,
    remarks: str | None = None,
) -> dict[str, Any]:
    from_status, to_status, records_remarks = moderation_transition(action)
    try:
        req = requirements_repo.moderate_requirement(
            table=table,
            requirement_id=requirement_id,
            from_status=from_status,
            to_status=to_status,
            remarks=normalize_remarks(remarks) if records_remarks else None,
            record_remarks=records_remarks,
        )
    except DdbConflict as e:
        raise Conflict(MSG_ALREADY_PROCESSED) from e
    log.info("requirement_moderated", requirement_id=requirement_id, approval_status=to_status)
    return {
        k: req.get(k) for k in ("id", "title", "approvalStatus", "adminRemarks", "adminRemarksAt")
    }
