from __future__ import annotations

from typing import Any

from boto3.dynamodb.conditions import Attr, Key

from ..db.dynamodb.schema import GSI1
from ..db.dynamodb.table import DynamoTable
from .common import new_id, now_iso, strip_internal, to_ddb, type_pk
from .requirements_repo import STATUS_OPEN, requirement_key

INTEREST_TYPE = "INTEREST"

INTEREST_PENDING = "PENDING"
INTEREST_ACCEPTED = "ACCEPTED"
INTEREST_REJECTED = "REJECTED"

PAYLOAD_FIELDS = (
    "message",
    "proposedBudget",
    "proposedTimelineStart",
    "proposedTimelineEnd",
    "portfolioLink",
)

_API_FIELDS = (
    "id",
    "requirementId",
    "startupUserId",
    *PAYLOAD_FIELDS,
    "status",
    "createdAt",
    "updatedAt",
)


def interest_key(requirement_id: str, startup_user_id: str) -> dict[str, str]:
    rid = str(requirement_id or "").strip()
    sid = str(startup_user_id or "").strip()
    if not rid or not sid:
        raise ValueError("requirement_id and startup_user_id are required")
    return {"pk": f"REQUIREMENT#{rid}", "sk": f"INTEREST#{sid}"}


def normalize_interest_for_api(item: dict[str, Any] | None) -> dict[str, Any] | None:
    if not item:
        return None
    raw = strip_internal(item)
    out = {k: raw.get(k) for k in _API_FIELDS}
    out["id"] = raw.get("interestId")
    return out


def submit_interest(
    *,
    table: DynamoTable,
    requirement_id: str,
    startup_user_id: str,
    payload: dict[str, Any],
) -> dict[str, Any]:
    """
    Create or resubmit an EOI while the requirement is OPEN.

    One transaction: a ConditionCheck that the requirement exists with
    status OPEN, plus an upsert of the EOI that overwrites the payload,
    forces PENDING and keeps interestId/createdAt of an existing record.
    Raises DdbConflict when the requirement check fails.
    """
    now = now_iso()
    iid = new_id("eoi")
    key = interest_key(requirement_id, startup_user_id)

    sets = [
        "interestId = if_not_exists(interestId, :iid)",
        "entityType = :etype",
        "requirementId = :rid",
        "startupUserId = :sid",
        "#status = :pending",
        "createdAt = if_not_exists(createdAt, :now)",
        "updatedAt = :now",
        "gsi1pk = :gpk",
        "gsi1sk = if_not_exists(gsi1sk, :gsk)",
    ]
    names = {"#status": "status"}
    values: dict[str, Any] = {
        ":iid": iid,
        ":etype": "ExpressionOfInterest",
        ":rid": requirement_id,
        ":sid": startup_user_id,
        ":pending": INTEREST_PENDING,
        ":now": now,
        ":gpk": type_pk(INTEREST_TYPE),
        ":gsk": f"{now}#{iid}",
    }
    # Full overwrite of the payload: absent fields become null.
    for i, f in enumerate(PAYLOAD_FIELDS):
        names[f"#p{i}"] = f
        values[f":p{i}"] = to_ddb(payload.get(f))
        sets.append(f"#p{i} = :p{i}")

    table.transact_write(
        condition_checks=[
            table.tx_condition_check(
                key=requirement_key(requirement_id),
                condition_expression="attribute_exists(pk) AND #status = :open",
                expression_attribute_names={"#status": "status"},
                expression_attribute_values={":open": STATUS_OPEN},
            )
        ],
        updates=[
            table.tx_update(
                key=key,
                update_expression="SET " + ", ".join(sets),
                expression_attribute_names=names,
                expression_attribute_values=values,
            )
        ],
    )
    return normalize_interest_for_api(table.get_item(key=key)) or {}


def list_for_requirement(*, table: DynamoTable, requirement_id: str) -> list[dict[str, Any]]:
    items = table.query_all(
        key_condition_expression=Key("pk").eq(requirement_key(requirement_id)["pk"])
        & Key("sk").begins_with("INTEREST#"),
        scan_index_forward=True,
        consistent_read=True,
    )
    return [i for i in (normalize_interest_for_api(it) for it in items) if i]


def count_for_requirement(
    *,
    table: DynamoTable,
    requirement_id: str,
    status: str | None = None,
) -> int:
    return table.count(
        key_condition_expression=Key("pk").eq(requirement_key(requirement_id)["pk"])
        & Key("sk").begins_with("INTEREST#"),
        filter_expression=Attr("status").eq(status) if status else None,
    )


def list_interests(
    *,
    table: DynamoTable,
    startup_user_id: str | None = None,
    status: str | None = None,
) -> list[dict[str, Any]]:
    """All EOIs newest first, optionally filtered by submitter and status."""
    filt = None
    if startup_user_id:
        filt = Attr("startupUserId").eq(startup_user_id)
    if status:
        cond = Attr("status").eq(status)
        filt = cond if filt is None else (filt & cond)
    items = table.query_all(
        index_name=GSI1,
        key_condition_expression=Key("gsi1pk").eq(type_pk(INTEREST_TYPE)),
        scan_index_forward=False,
        filter_expression=filt,
    )
    return [i for i in (normalize_interest_for_api(it) for it in items) if i]


def decide_interest(
    *,
    table: DynamoTable,
    requirement_id: str,
    startup_user_id: str,
    owner_user_id: str,
    to_status: str,
) -> dict[str, Any]:
    """
    PENDING -> to_status, only for the requirement's owner.

    Transaction items are (ownership check, EOI update); DdbConflict's
    cancellation_codes tell the two preconditions apart.
    """
    key = interest_key(requirement_id, startup_user_id)
    table.transact_write(
        condition_checks=[
            table.tx_condition_check(
                key=requirement_key(requirement_id),
                condition_expression="attribute_exists(pk) AND ownerUserId = :owner",
                expression_attribute_values={":owner": owner_user_id},
            )
        ],
        updates=[
            table.tx_update(
                key=key,
                update_expression="SET #status = :to, updatedAt = :now",
                condition_expression="attribute_exists(pk) AND #status = :pending",
                expression_attribute_names={"#status": "status"},
                expression_attribute_values={
                    ":to": to_status,
                    ":pending": INTEREST_PENDING,
                    ":now": now_iso(),
                },
            )
        ],
    )
    return normalize_interest_for_api(table.get_item(key=key)) or {}


def keys_for_requirement(*, table: DynamoTable, requirement_id: str) -> list[dict[str, str]]:
    return [
        interest_key(requirement_id, i["startupUserId"])
        for i in list_for_requirement(table=table, requirement_id=requirement_id)
        if i.get("startupUserId")
    ]


def keys_for_startup(*, table: DynamoTable, startup_user_id: str) -> list[dict[str, str]]:
    return [
        interest_key(i["requirementId"], startup_user_id)
        for i in list_interests(table=table, startup_user_id=startup_user_id)
        if i.get("requirementId")
    ]
