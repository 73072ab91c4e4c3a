from __future__ import annotations

from fastapi import APIRouter, Depends

from ..db.dynamodb.table import DynamoTable
from ..modules.identity import Principal
from ..modules.interests import interest_service
from ..modules.requirements import requirement_service
from .deps import get_table, startup_user
from .fields import ApiModel, OptNumber, OptStr

router = APIRouter(tags=["requirements"])


class ExpressInterestRequest(ApiModel):
    message: OptStr = None
    proposed_budget: OptNumber = None
    proposed_timeline_start: OptStr = None
    proposed_timeline_end: OptStr = None
    portfolio_link: OptStr = None


# Public reads: identity is resolved by middleware but not required.


@router.get("")
def list_open_requirements(
    category: str | None = None,
    search: str | None = None,
    table: DynamoTable = Depends(get_table),
):
    return requirement_service.public_list(table=table, category=category, search=search)


@router.get("/my/interests")
def my_interests(principal: Principal = Depends(startup_user), table: DynamoTable = Depends(get_table)):
    return interest_service.my_interests(table=table, startup_user_id=principal.id)


@router.get("/{requirement_id}")
def get_open_requirement(requirement_id: str, table: DynamoTable = Depends(get_table)):
    return requirement_service.public_detail(table=table, requirement_id=requirement_id)


@router.post("/{requirement_id}/express-interest", status_code=201)
def express_interest(
    requirement_id: str,
    body: ExpressInterestRequest | None = None,
    principal: Principal = Depends(startup_user),
    table: DynamoTable = Depends(get_table),
):
    payload = body.to_fields() if body else {}
    return interest_service.submit_interest(
        table=table,
        requirement_id=requirement_id,
        startup_user_id=principal.id,
        payload=payload,
    )
