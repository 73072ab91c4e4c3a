from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response
from pydantic import EmailStr, field_validator
from pydantic.alias_generators import to_camel

from ..db.dynamodb.table import DynamoTable
from ..modules.accounts import account_service, admin_users
from ..modules.admin import dashboard
from ..modules.requirements import requirement_service
from .deps import admin_user, get_table
from .fields import ApiModel, OptStr

router = APIRouter(tags=["admin"], dependencies=[Depends(admin_user)])


class UserUpdate(ApiModel):
    name: OptStr = None
    email: EmailStr | None = None
    profile: dict[str, Any] | None = None

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def profile_fields(self) -> dict[str, Any] | None:
        if not self.profile:
            return None
        # Accept snake_case or camelCase keys, store camelCase.
        return {to_camel(str(k)): v for k, v in self.profile.items()}


class RemarksRequest(ApiModel):
    remarks: str | None = None


# --- account approvals ---


@router.get("/approvals")
def pending_approvals(table: DynamoTable = Depends(get_table)):
    return account_service.list_pending(table=table)


@router.post("/approvals/{user_id}/approve")
def approve_user(user_id: str, table: DynamoTable = Depends(get_table)):
    return account_service.approve_account(table=table, user_id=user_id)


@router.post("/approvals/{user_id}/reject")
def reject_user(user_id: str, table: DynamoTable = Depends(get_table)):
    return account_service.reject_account(table=table, user_id=user_id)


# --- user management ---


@router.get("/users")
def list_users(role: str | None = None, table: DynamoTable = Depends(get_table)):
    return admin_users.list_users(table=table, role=role)


@router.get("/users/{user_id}")
def get_user(user_id: str, table: DynamoTable = Depends(get_table)):
    return admin_users.get_user_detail(table=table, user_id=user_id)


@router.put("/users/{user_id}")
def update_user(user_id: str, body: UserUpdate, table: DynamoTable = Depends(get_table)):
    return admin_users.update_user(
        table=table,
        user_id=user_id,
        name=body.name,
        email=body.email,
        profile=body.profile_fields(),
    )


@router.delete("/users/{user_id}", status_code=204)
def delete_user(user_id: str, table: DynamoTable = Depends(get_table)):
    admin_users.delete_user(table=table, user_id=user_id)
    return Response(status_code=204)


@router.post("/users/{user_id}/request-reverification")
def request_reverification(user_id: str, table: DynamoTable = Depends(get_table)):
    return admin_users.request_reverification(table=table, user_id=user_id)


# --- dashboard ---


@router.get("/stats")
def stats(table: DynamoTable = Depends(get_table)):
    return dashboard.stats(table=table)


@router.get("/activities")
def activities(limit: str | None = None, table: DynamoTable = Depends(get_table)):
    return dashboard.activities(table=table, limit=limit)


@router.get("/active-projects")
def active_projects(table: DynamoTable = Depends(get_table)):
    return dashboard.active_projects(table=table)


# --- requirement moderation ---


@router.get("/requirement-approvals")
def pending_requirements(table: DynamoTable = Depends(get_table)):
    return requirement_service.moderation_queue(table=table)


@router.post("/requirement-approvals/{requirement_id}/approve")
def approve_requirement(requirement_id: str, table: DynamoTable = Depends(get_table)):
    return requirement_service.moderate(table=table, requirement_id=requirement_id, action="approve")


@router.post("/requirement-approvals/{requirement_id}/send-back")
def send_back_requirement(
    requirement_id: str,
    body: RemarksRequest | None = None,
    table: DynamoTable = Depends(get_table),
):
    return requirement_service.moderate(
        table=table,
        requirement_id=requirement_id,
        action="send-back",
        remarks=body.remarks if body else None,
    )


@router.post("/requirement-approvals/{requirement_id}/reject")
def reject_requirement(
    requirement_id: str,
    body: RemarksRequest | None = None,
    table: DynamoTable = Depends(get_table),
):
    return requirement_service.moderate(
        table=table,
        requirement_id=requirement_id,
        action="reject",
        remarks=body.remarks if body else None,
    )
