from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import EmailStr, Field

from ..auth.claims import ClaimsService
from ..auth.passwords import PasswordHasher
from ..db.dynamodb.table import DynamoTable
from ..modules.accounts import account_service
from ..modules.identity import Principal
from .deps import authenticated, get_claims, get_hasher, get_table
from .fields import ApiModel, OptInt, OptStr, Phone, RequiredText

router = APIRouter(tags=["auth"])


class RegisterRequest(ApiModel):
    name: RequiredText
    email: EmailStr
    password: str = Field(min_length=6)
    role: Literal["GCC", "STARTUP"]
    description: RequiredText
    company_website: OptStr = None
    gst_number: OptStr = None
    additional_email: OptStr = None
    mobile_primary: Phone = None
    mobile_secondary: Phone = None
    company_name: OptStr = None
    parent_company: OptStr = None
    year_established: OptInt = None
    industry: OptStr = None


class LoginRequest(ApiModel):
    email: RequiredText
    password: str = Field(min_length=1)


@router.post("/register", status_code=201)
def register(body: RegisterRequest, table: DynamoTable = Depends(get_table), hasher: PasswordHasher = Depends(get_hasher)):
    user = account_service.register(table=table, hasher=hasher, data=body.to_fields())
    return {"message": account_service.MSG_REGISTERED, "user": user}


@router.post("/login")
def login(
    body: LoginRequest,
    table: DynamoTable = Depends(get_table),
    hasher: PasswordHasher = Depends(get_hasher),
    claims: ClaimsService = Depends(get_claims),
):
    return account_service.login(
        table=table, hasher=hasher, claims=claims, email=body.email, password=body.password
    )


@router.get("/me")
def me(principal: Principal = Depends(authenticated), table: DynamoTable = Depends(get_table)):
    return account_service.me(table=table, principal=principal)
