from __future__ import annotations

from typing import Any

from ...db.dynamodb.errors import DdbConflict
from ...db.dynamodb.table import DynamoTable
from ...errors import Conflict, NotFound, ValidationFailed
from ...observability.logging import get_logger
from ...repositories import interests_repo, profiles_repo, requirements_repo, users_repo
from ..identity.roles import REGISTRANT_ROLES, ROLE_ADMIN, ROLE_STARTUP

log = get_logger("admin_users")

MSG_USER_NOT_FOUND = "User not found"
MSG_CANNOT_DELETE = "User not found or cannot delete admin"


def list_users(*, table: DynamoTable, role: str | None = None) -> list[dict[str, Any]]:
    """Non-admin users, newest first; unknown role filters are ignored."""
    r = role if role in REGISTRANT_ROLES else None
    return users_repo.list_users(table=table, role=r)


def _registrant(table: DynamoTable, user_id: str) -> dict[str, Any]:
    user = users_repo.get_user(table=table, user_id=user_id)
    if not user or user.get("role") == ROLE_ADMIN:
        raise NotFound(MSG_USER_NOT_FOUND)
    return user


def get_user_detail(*, table: DynamoTable, user_id: str) -> dict[str, Any]:
    user = _registrant(table, user_id)
    profile = profiles_repo.get_profile(table=table, user_id=user_id)
    return {"user": user, "profile": profile}


def update_user(
    *,
    table: DynamoTable,
    user_id: str,
    name: str | None = None,
    email: str | None = None,
    profile: dict[str, Any] | None = None,
) -> dict[str, Any]:
    user = _registrant(table, user_id)

    if name and name.strip():
        users_repo.update_name(table=table, user_id=user_id, name=name.strip())

    if email and email.strip():
        try:
            users_repo.change_email(
                table=table, user_id=user_id, old_email=user["email"], new_email=email
            )
        except DdbConflict as e:
            # Items are (new index put, account update, old index delete).
            codes = e.cancellation_codes
            if codes and codes[0] == "ConditionalCheckFailed":
                raise Conflict("Email already in use") from e
            raise Conflict("User was modified concurrently") from e

    if profile:
        try:
            profiles_repo.update_profile(
                table=table, user_id=user_id, profile_type=user["role"], updates=profile
            )
        except DdbConflict as e:
            raise NotFound("Profile not found") from e

    log.info("admin_user_updated", user_id=user_id)
    return users_repo.get_user(table=table, user_id=user_id) or user


def delete_user(*, table: DynamoTable, user_id: str) -> int:
    """
    Remove a non-admin user and everything hanging off it: email index,
    profile, owned requirements with their EOIs, and EOIs it submitted.
    Returns the number of dependent items removed.

    Owned requirements are closed first so nothing new attaches to them, and
    the account row goes last: after a partial failure the user is still
    there and the same call can be retried.
    """
    try:
        user = _registrant(table, user_id)
    except NotFound as e:
        raise NotFound(MSG_CANNOT_DELETE) from e

    owned = requirements_repo.list_requirements(table=table, owner_user_id=user_id)
    for req in owned:
        try:
            requirements_repo.close_requirement(table=table, requirement_id=req["id"])
        except DdbConflict:
            # Already gone from an earlier attempt.
            continue

    keys: list[dict[str, Any]] = []
    for req in owned:
        keys.extend(interests_repo.keys_for_requirement(table=table, requirement_id=req["id"]))
    keys.extend(interests_repo.keys_for_startup(table=table, startup_user_id=user_id))
    removed = table.batch_delete(keys=keys)

    keys = [requirements_repo.requirement_key(req["id"]) for req in owned]
    keys.append(profiles_repo.profile_key(user_id))
    if user.get("email"):
        keys.append(users_repo.email_index_key(user["email"]))
    removed += table.batch_delete(keys=keys)

    try:
        users_repo.delete_account(table=table, user_id=user_id)
    except DdbConflict as e:
        raise NotFound(MSG_CANNOT_DELETE) from e
    log.info("admin_user_deleted", user_id=user_id, cascaded_items=removed)
    return removed


def request_reverification(*, table: DynamoTable, user_id: str) -> dict[str, Any]:
    user = users_repo.get_user(table=table, user_id=user_id)
    if not user:
        raise NotFound(MSG_USER_NOT_FOUND)
    if user.get("role") != ROLE_STARTUP:
        raise ValidationFailed("Only startups can be sent for reverification")
    try:
        profiles_repo.set_reverification_required(table=table, user_id=user_id)
    except DdbConflict as e:
        raise NotFound("Profile not found") from e
    log.info("reverification_requested", user_id=user_id)
    return {"message": "Reverification requested. Startup will be prompted to update their profile."}
