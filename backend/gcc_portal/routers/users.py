from __future__ import annotations

from fastapi import APIRouter, Depends

from ..db.dynamodb.table import DynamoTable
from ..modules.identity import Principal
from ..modules.profiles import profile_service
from .deps import approved, get_table

router = APIRouter(tags=["users"])


@router.get("/profile")
def my_profile(principal: Principal = Depends(approved), table: DynamoTable = Depends(get_table)):
    # null for roles without a profile (admins).
    return profile_service.own_profile(table=table, principal=principal)
