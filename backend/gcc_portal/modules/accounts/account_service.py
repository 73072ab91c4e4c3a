from __future__ import annotations

from typing import Any

from ...auth.claims import ClaimsService
from ...auth.passwords import PasswordHasher
from ...db.dynamodb.errors import DdbConflict
from ...db.dynamodb.table import DynamoTable
from ...errors import Conflict, Forbidden, NotFound, Unauthorized
from ...observability.logging import get_logger
from ...repositories import profiles_repo, users_repo
from ..identity.principal import Principal, claims_for_user, effective_approval_status
from ..identity.roles import (
    APPROVAL_APPROVED,
    APPROVAL_PENDING,
    APPROVAL_REJECTED,
    ROLE_ADMIN,
    ROLE_GCC,
    ROLE_STARTUP,
)

log = get_logger("accounts")

MSG_INVALID_LOGIN = "Invalid email or password"
MSG_LOGIN_PENDING = (
    "Your account is pending admin approval. "
    "You cannot login until an administrator approves your registration."
)
MSG_ALREADY_PROCESSED = "User not found or already processed"
MSG_REGISTERED = (
    "Registration successful. Your account is pending admin approval. "
    "You will be able to login once approved."
)


def _registration_profile(role: str, data: dict[str, Any]) -> dict[str, Any]:
    """Map registration fields onto the role's profile fields."""
    common = {
        "companyName": data.get("companyName"),
        "website": data.get("companyWebsite"),
        "gstNumber": data.get("gstNumber"),
        "mobilePrimary": data.get("mobilePrimary"),
    }
    if role == ROLE_GCC:
        return {
            **common,
            "parentCompany": data.get("parentCompany"),
            "yearEstablished": data.get("yearEstablished"),
            "industry": data.get("industry"),
            "description": data.get("description"),
        }
    return {
        **common,
        "solutionDescription": data.get("description"),
        "additionalEmail": data.get("additionalEmail"),
        "mobileSecondary": data.get("mobileSecondary"),
    }


def register(*, table: DynamoTable, hasher: PasswordHasher, data: dict[str, Any]) -> dict[str, Any]:
    """
    Create a PENDING GCC/STARTUP account with its profile.

    `data` is the validated registration payload (camelCase keys).
    """
    role = str(data["role"])
    user_item = users_repo.build_user_item(
        email=data["email"],
        password_hash=hasher.hash(data["password"]),
        name=data["name"],
        role=role,
        approval_status=APPROVAL_PENDING,
    )
    profile_item = profiles_repo.build_profile_item(
        user_id=user_item["userId"],
        profile_type=role,
        fields=_registration_profile(role, data),
    )
    try:
        user = users_repo.create_user(table=table, user_item=user_item, profile_item=profile_item)
    except DdbConflict as e:
        raise Conflict("Email already registered") from e
    log.info("account_registered", user_id=user["id"], role=role)
    return user


def login(
    *,
    table: DynamoTable,
    hasher: PasswordHasher,
    claims: ClaimsService,
    email: str,
    password: str,
) -> dict[str, Any]:
    record = users_repo.get_user_record_by_email(table=table, email=email)
    if not record or not hasher.verify(password, record.get("passwordHash")):
        raise Unauthorized(MSG_INVALID_LOGIN)

    user = users_repo.normalize_user_for_api(record) or {}
    snapshot = {k: user.get(k) for k in ("id", "email", "name", "role", "approvalStatus")}
    if user.get("role") != ROLE_ADMIN and user.get("approvalStatus") != APPROVAL_APPROVED:
        log.info("login_denied_pending", user_id=user.get("id"))
        raise Forbidden(MSG_LOGIN_PENDING, extensions={"code": "PENDING_APPROVAL", "user": snapshot})

    snapshot["approvalStatus"] = effective_approval_status(
        role=str(user.get("role") or ""), approval_status=user.get("approvalStatus")
    )
    token = claims.issue(claims_for_user(user))
    log.info("login_succeeded", user_id=user.get("id"), role=user.get("role"))
    return {"token": token, "expiresIn": claims.default_ttl_seconds, "user": snapshot}


def me(*, table: DynamoTable, principal: Principal) -> dict[str, Any]:
    user = users_repo.get_user(table=table, user_id=principal.id)
    if not user:
        raise NotFound("User not found")
    return {k: user.get(k) for k in ("id", "email", "name", "role", "approvalStatus", "createdAt")}


def _transition(*, table: DynamoTable, user_id: str, to_status: str) -> dict[str, Any]:
    try:
        user = users_repo.transition_approval(
            table=table, user_id=user_id, from_status=APPROVAL_PENDING, to_status=to_status
        )
    except DdbConflict as e:
        raise Conflict(MSG_ALREADY_PROCESSED) from e
    log.info("account_approval_changed", user_id=user_id, approval_status=to_status)
    return {k: user.get(k) for k in ("id", "email", "name", "role", "approvalStatus")}


def approve_account(*, table: DynamoTable, user_id: str) -> dict[str, Any]:
    return _transition(table=table, user_id=user_id, to_status=APPROVAL_APPROVED)


def reject_account(*, table: DynamoTable, user_id: str) -> dict[str, Any]:
    return _transition(table=table, user_id=user_id, to_status=APPROVAL_REJECTED)


def list_pending(*, table: DynamoTable) -> list[dict[str, Any]]:
    return [
        u
        for u in users_repo.list_users(table=table, approval_status=APPROVAL_PENDING, oldest_first=True)
        if u.get("role") in (ROLE_GCC, ROLE_STARTUP)
    ]


def seed_admin(
    *,
    table: DynamoTable,
    hasher: PasswordHasher,
    email: str,
    password: str,
    name: str,
) -> tuple[dict[str, Any], bool]:
    """
    Ensure an ADMIN account exists for `email`. Returns (user, created).
    An existing account with that email is left untouched.
    """
    existing = users_repo.get_user_record_by_email(table=table, email=email)
    if existing:
        return users_repo.normalize_user_for_api(existing) or {}, False
    user_item = users_repo.build_user_item(
        email=email,
        password_hash=hasher.hash(password),
        name=name,
        role=ROLE_ADMIN,
        approval_status=APPROVAL_APPROVED,
    )
    try:
        user = users_repo.create_user(table=table, user_item=user_item)
    except DdbConflict:
        # Lost a race with another seeder.
        existing = users_repo.get_user_record_by_email(table=table, email=email)
        return users_repo.normalize_user_for_api(existing) or {}, False
    log.info("admin_seeded", user_id=user["id"])
    return user, True
