from __future__ import annotations

from typing import Any

from boto3.dynamodb.conditions import Attr, Key

from ..db.dynamodb.schema import GSI1
from ..db.dynamodb.table import DynamoTable
from ..modules.identity.roles import (
    APPROVAL_PENDING,
    REGISTRANT_ROLES,
    ROLE_ADMIN,
)
from .common import listing_sk, new_id, now_iso, strip_internal, type_pk

USER_TYPE = "USER"

# Fields safe to return to any caller; passwordHash is never included.
_USER_API_FIELDS = ("id", "email", "name", "role", "approvalStatus", "createdAt", "updatedAt")


def normalize_email(email: str | None) -> str:
    return str(email or "").strip().lower()


def user_key(user_id: str) -> dict[str, str]:
    uid = str(user_id or "").strip()
    if not uid:
        raise ValueError("user_id is required")
    return {"pk": f"USER#{uid}", "sk": "ACCOUNT"}


def email_index_key(email: str) -> dict[str, str]:
    em = normalize_email(email)
    if not em:
        raise ValueError("email is required")
    return {"pk": f"USER_EMAIL#{em}", "sk": "USER"}


def normalize_user_for_api(item: dict[str, Any] | None) -> dict[str, Any] | None:
    if not item:
        return None
    raw = strip_internal(item)
    out = {k: raw.get(k) for k in _USER_API_FIELDS}
    out["id"] = raw.get("userId")
    return out


def build_user_item(
    *,
    email: str,
    password_hash: str,
    name: str,
    role: str,
    approval_status: str = APPROVAL_PENDING,
    user_id: str | None = None,
) -> dict[str, Any]:
    uid = user_id or new_id("usr")
    now = now_iso()
    return {
        **user_key(uid),
        "entityType": "User",
        "userId": uid,
        "email": normalize_email(email),
        "passwordHash": password_hash,
        "name": str(name or "").strip(),
        "role": role,
        "approvalStatus": approval_status,
        "createdAt": now,
        "updatedAt": now,
        "gsi1pk": type_pk(USER_TYPE),
        "gsi1sk": listing_sk(now, uid),
    }


def build_email_index_item(*, email: str, user_id: str) -> dict[str, Any]:
    return {
        **email_index_key(email),
        "entityType": "UserEmailIndex",
        "email": normalize_email(email),
        "userId": user_id,
    }


def create_user(
    *,
    table: DynamoTable,
    user_item: dict[str, Any],
    profile_item: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Write account, email index and (optional) profile in one transaction.

    The email index put is conditioned on absence, so two registrations for
    the same address cannot both succeed. Raises DdbConflict otherwise.
    """
    absent = "attribute_not_exists(pk)"
    puts = [
        table.tx_put(item=user_item, condition_expression=absent),
        table.tx_put(
            item=build_email_index_item(email=user_item["email"], user_id=user_item["userId"]),
            condition_expression=absent,
        ),
    ]
    if profile_item:
        puts.append(table.tx_put(item=profile_item, condition_expression=absent))
    table.transact_write(puts=puts)
    return normalize_user_for_api(user_item) or {}


def get_user(*, table: DynamoTable, user_id: str) -> dict[str, Any] | None:
    return normalize_user_for_api(table.get_item(key=user_key(user_id)))


def get_user_record(*, table: DynamoTable, user_id: str) -> dict[str, Any] | None:
    """Raw stored item (includes passwordHash). Repository-internal callers only."""
    return table.get_item(key=user_key(user_id))


def get_user_record_by_email(*, table: DynamoTable, email: str) -> dict[str, Any] | None:
    em = normalize_email(email)
    if not em:
        return None
    idx = table.get_item(key=email_index_key(em))
    uid = str((idx or {}).get("userId") or "").strip()
    if not uid:
        return None
    return get_user_record(table=table, user_id=uid)


def transition_approval(
    *,
    table: DynamoTable,
    user_id: str,
    from_status: str,
    to_status: str,
) -> dict[str, Any]:
    """
    Atomic `UPDATE ... WHERE role IN registrants AND approvalStatus = from`.
    Raises DdbConflict when the row is missing, is an admin, or has moved on.
    """
    roles = sorted(REGISTRANT_ROLES)
    role_placeholders = ", ".join(f":r{i}" for i in range(len(roles)))
    values: dict[str, Any] = {
        ":from": from_status,
        ":to": to_status,
        ":now": now_iso(),
        **{f":r{i}": r for i, r in enumerate(roles)},
    }
    updated = table.update_item(
        key=user_key(user_id),
        update_expression="SET approvalStatus = :to, updatedAt = :now",
        condition_expression=(
            f"attribute_exists(pk) AND #role IN ({role_placeholders}) AND approvalStatus = :from"
        ),
        expression_attribute_names={"#role": "role"},
        expression_attribute_values=values,
    )
    return normalize_user_for_api(updated) or {}


def list_users(
    *,
    table: DynamoTable,
    role: str | None = None,
    approval_status: str | None = None,
    include_admins: bool = False,
    oldest_first: bool = False,
) -> list[dict[str, Any]]:
    filt = None
    if role:
        filt = Attr("role").eq(role)
    elif not include_admins:
        filt = Attr("role").ne(ROLE_ADMIN)
    if approval_status:
        cond = Attr("approvalStatus").eq(approval_status)
        filt = cond if filt is None else (filt & cond)
    items = table.query_all(
        index_name=GSI1,
        key_condition_expression=Key("gsi1pk").eq(type_pk(USER_TYPE)),
        scan_index_forward=oldest_first,
        filter_expression=filt,
    )
    return [u for u in (normalize_user_for_api(it) for it in items) if u]


def update_name(*, table: DynamoTable, user_id: str, name: str) -> dict[str, Any]:
    updated = table.update_item(
        key=user_key(user_id),
        update_expression="SET #name = :name, updatedAt = :now",
        condition_expression="attribute_exists(pk) AND #role <> :admin",
        expression_attribute_names={"#name": "name", "#role": "role"},
        expression_attribute_values={":name": name, ":now": now_iso(), ":admin": ROLE_ADMIN},
    )
    return normalize_user_for_api(updated) or {}


def change_email(*, table: DynamoTable, user_id: str, old_email: str, new_email: str) -> None:
    """
    Move the email index and the account's email in one transaction.

    Cancellation codes follow (condition check, put, update, delete) order;
    index 0 failing means the new address is already taken.
    """
    old_em = normalize_email(old_email)
    new_em = normalize_email(new_email)
    if old_em == new_em:
        return
    table.transact_write(
        puts=[
            table.tx_put(
                item=build_email_index_item(email=new_em, user_id=user_id),
                condition_expression="attribute_not_exists(pk)",
            )
        ],
        updates=[
            table.tx_update(
                key=user_key(user_id),
                update_expression="SET email = :new, updatedAt = :now",
                condition_expression="attribute_exists(pk) AND email = :old",
                expression_attribute_names=None,
                expression_attribute_values={":new": new_em, ":old": old_em, ":now": now_iso()},
            )
        ],
        deletes=[table.tx_delete(key=email_index_key(old_em))],
    )


def delete_account(*, table: DynamoTable, user_id: str) -> dict[str, Any]:
    """
    Conditionally delete the account item (never an admin). Callers remove
    dependents first. Raises DdbConflict otherwise.
    """
    old = table.delete_item(
        key=user_key(user_id),
        condition_expression="attribute_exists(pk) AND #role <> :admin",
        expression_attribute_names={"#role": "role"},
        expression_attribute_values={":admin": ROLE_ADMIN},
        return_values="ALL_OLD",
    )
    return old or {}
