from __future__ import annotations

import secrets
from typing import Any

from boto3.dynamodb.conditions import Attr, Key

from ..db.dynamodb.schema import GSI1
from ..db.dynamodb.table import DynamoTable
from .common import listing_sk, new_id, now_iso, set_clause, strip_internal, to_ddb, type_pk

REQUIREMENT_TYPE = "REQUIREMENT"

STATUS_OPEN = "OPEN"
STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_CLOSED = "CLOSED"

APPROVAL_PENDING = "PENDING_APPROVAL"
APPROVAL_APPROVED = "APPROVED"
APPROVAL_SENT_BACK = "SENT_BACK"
APPROVAL_REJECTED = "REJECTED"

# Owner-editable fields (COALESCE on update).
EDITABLE_FIELDS = (
    "title",
    "description",
    "category",
    "priority",
    "status",
    "budgetMin",
    "budgetMax",
    "budgetCurrency",
    "timelineStart",
    "timelineEnd",
    "techStack",
    "skills",
    "industryType",
    "ndaRequired",
)

_API_FIELDS = (
    "id",
    "ownerUserId",
    "anonymizedId",
    *EDITABLE_FIELDS,
    "approvalStatus",
    "adminRemarks",
    "adminRemarksAt",
    "createdAt",
    "updatedAt",
)

# Public views never carry the owner or moderation details.
_PUBLIC_FIELDS = (
    "id",
    "anonymizedId",
    "title",
    "description",
    "category",
    "priority",
    "status",
    "budgetMin",
    "budgetMax",
    "budgetCurrency",
    "timelineStart",
    "timelineEnd",
    "techStack",
    "skills",
    "industryType",
    "ndaRequired",
    "createdAt",
)


def requirement_key(requirement_id: str) -> dict[str, str]:
    rid = str(requirement_id or "").strip()
    if not rid:
        raise ValueError("requirement_id is required")
    return {"pk": f"REQUIREMENT#{rid}", "sk": "DETAILS"}


def new_anonymized_id() -> str:
    return "GCC-" + secrets.token_hex(5).upper()


def normalize_requirement_for_api(item: dict[str, Any] | None) -> dict[str, Any] | None:
    if not item:
        return None
    raw = strip_internal(item)
    out = {k: raw.get(k) for k in _API_FIELDS}
    out["id"] = raw.get("requirementId")
    out["techStack"] = list(raw.get("techStack") or [])
    out["skills"] = list(raw.get("skills") or [])
    return out


def public_view(requirement: dict[str, Any]) -> dict[str, Any]:
    return {k: requirement.get(k) for k in _PUBLIC_FIELDS}


def create_requirement(
    *,
    table: DynamoTable,
    owner_user_id: str,
    fields: dict[str, Any],
) -> dict[str, Any]:
    rid = new_id("req")
    now = now_iso()
    item: dict[str, Any] = {
        **requirement_key(rid),
        "entityType": "Requirement",
        "requirementId": rid,
        "ownerUserId": owner_user_id,
        "anonymizedId": new_anonymized_id(),
        "priority": "MEDIUM",
        "status": STATUS_OPEN,
        "approvalStatus": APPROVAL_PENDING,
        "budgetCurrency": "USD",
        "techStack": [],
        "skills": [],
        "ndaRequired": False,
        "createdAt": now,
        "updatedAt": now,
        "gsi1pk": type_pk(REQUIREMENT_TYPE),
        "gsi1sk": listing_sk(now, rid),
    }
    for k in EDITABLE_FIELDS:
        v = fields.get(k)
        if v is not None:
            item[k] = to_ddb(v)
    # New requirements always start OPEN and awaiting moderation.
    item["status"] = STATUS_OPEN
    table.put_item(item=item, condition_expression="attribute_not_exists(pk)")
    return normalize_requirement_for_api(item) or {}


def get_requirement(*, table: DynamoTable, requirement_id: str) -> dict[str, Any] | None:
    return normalize_requirement_for_api(table.get_item(key=requirement_key(requirement_id)))


def list_requirements(
    *,
    table: DynamoTable,
    owner_user_id: str | None = None,
    status: str | list[str] | tuple[str, ...] | None = None,
    approval_status: str | None = None,
    category: str | None = None,
    oldest_first: bool = False,
) -> list[dict[str, Any]]:
    conds = []
    if owner_user_id:
        conds.append(Attr("ownerUserId").eq(owner_user_id))
    if isinstance(status, str):
        conds.append(Attr("status").eq(status))
    elif status:
        conds.append(Attr("status").is_in(list(status)))
    if approval_status:
        conds.append(Attr("approvalStatus").eq(approval_status))
    if category:
        conds.append(Attr("category").eq(category))
    filt = None
    for c in conds:
        filt = c if filt is None else (filt & c)
    items = table.query_all(
        index_name=GSI1,
        key_condition_expression=Key("gsi1pk").eq(type_pk(REQUIREMENT_TYPE)),
        scan_index_forward=oldest_first,
        filter_expression=filt,
    )
    return [r for r in (normalize_requirement_for_api(it) for it in items) if r]


def update_requirement(
    *,
    table: DynamoTable,
    requirement_id: str,
    owner_user_id: str,
    updates: dict[str, Any],
    resubmit: bool = False,
) -> dict[str, Any]:
    """
    Owner edit with COALESCE semantics, conditioned on ownership.

    With resubmit=True the same write also moves SENT_BACK -> PENDING_APPROVAL
    and removes the admin remarks; the condition then additionally requires
    approvalStatus = SENT_BACK. Raises DdbConflict when the condition fails.
    """
    changes = {k: v for k, v in updates.items() if k in EDITABLE_FIELDS and v is not None}
    changes["updatedAt"] = now_iso()
    condition = "attribute_exists(pk) AND ownerUserId = :owner"
    if resubmit:
        changes["approvalStatus"] = APPROVAL_PENDING
        condition += " AND approvalStatus = :sentBack"

    parts, names, values = set_clause(changes)
    values[":owner"] = owner_user_id
    expr = "SET " + ", ".join(parts)
    if resubmit:
        values[":sentBack"] = APPROVAL_SENT_BACK
        expr += " REMOVE adminRemarks, adminRemarksAt"

    updated = table.update_item(
        key=requirement_key(requirement_id),
        update_expression=expr,
        condition_expression=condition,
        expression_attribute_names=names,
        expression_attribute_values=values,
    )
    return normalize_requirement_for_api(updated) or {}


def moderate_requirement(
    *,
    table: DynamoTable,
    requirement_id: str,
    from_status: str,
    to_status: str,
    remarks: str | None,
    record_remarks: bool,
) -> dict[str, Any]:
    """
    Atomic `UPDATE ... WHERE approvalStatus = from`. With record_remarks the
    remarks (possibly null) and a timestamp are stored, otherwise both are
    removed. Raises DdbConflict when the requirement is missing or has moved on.
    """
    now = now_iso()
    values: dict[str, Any] = {":from": from_status, ":to": to_status, ":now": now}
    if record_remarks:
        expr = "SET approvalStatus = :to, adminRemarks = :remarks, adminRemarksAt = :now, updatedAt = :now"
        values[":remarks"] = remarks
    else:
        expr = "SET approvalStatus = :to, updatedAt = :now REMOVE adminRemarks, adminRemarksAt"
    updated = table.update_item(
        key=requirement_key(requirement_id),
        update_expression=expr,
        condition_expression="attribute_exists(pk) AND approvalStatus = :from",
        expression_attribute_names=None,
        expression_attribute_values=values,
    )
    return normalize_requirement_for_api(updated) or {}


def close_requirement(
    *,
    table: DynamoTable,
    requirement_id: str,
    owner_user_id: str | None = None,
) -> None:
    """
    Mark the requirement CLOSED so no new EOI can be submitted against it.
    Raises DdbConflict when it is missing (or not owned, when an owner is given).
    """
    cond = "attribute_exists(pk)"
    values: dict[str, Any] = {":closed": STATUS_CLOSED, ":now": now_iso()}
    if owner_user_id is not None:
        cond += " AND ownerUserId = :owner"
        values[":owner"] = owner_user_id
    table.update_item(
        key=requirement_key(requirement_id),
        update_expression="SET #status = :closed, updatedAt = :now",
        condition_expression=cond,
        expression_attribute_names={"#status": "status"},
        expression_attribute_values=values,
    )


def delete_requirement(
    *,
    table: DynamoTable,
    requirement_id: str,
    owner_user_id: str | None = None,
) -> dict[str, Any]:
    """
    Delete the requirement item (optionally conditioned on ownership).
    EOIs share the requirement's partition; callers remove them first so an
    interrupted cascade can be retried.
    """
    cond = "attribute_exists(pk)"
    values: dict[str, Any] | None = None
    if owner_user_id is not None:
        cond += " AND ownerUserId = :owner"
        values = {":owner": owner_user_id}
    old = table.delete_item(
        key=requirement_key(requirement_id),
        condition_expression=cond,
        expression_attribute_values=values,
        return_values="ALL_OLD",
    )
    return normalize_requirement_for_api(old) or {}
