from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Response

from ..db.dynamodb.table import DynamoTable
from ..modules.identity import Principal
from ..modules.interests import interest_service
from ..modules.profiles import profile_service
from ..modules.requirements import requirement_service
from .deps import gcc_user, get_table
from .fields import ApiModel, OptInt, OptNumber, OptStr, Phone, RequiredText

router = APIRouter(tags=["gcc"], dependencies=[Depends(gcc_user)])

Priority = Literal["LOW", "MEDIUM", "HIGH"]
BusinessStatus = Literal["OPEN", "IN_PROGRESS", "CLOSED"]


class GccProfileUpdate(ApiModel):
    company_name: OptStr = None
    parent_company: OptStr = None
    year_established: OptInt = None
    industry: OptStr = None
    location: OptStr = None
    headquarters_location: OptStr = None
    gcc_locations: OptStr = None
    size: OptStr = None
    description: OptStr = None
    website: OptStr = None
    contact_person: OptStr = None
    contact_designation: OptStr = None
    contact_email: OptStr = None
    phone: Phone = None
    mobile_primary: Phone = None
    mobile_secondary: Phone = None
    additional_email: OptStr = None
    linkedin: OptStr = None
    gst_number: OptStr = None
    alternate_contact_person: OptStr = None
    alternate_contact_designation: OptStr = None
    alternate_contact_email: OptStr = None
    alternate_contact_phone: Phone = None


class RequirementFields(ApiModel):
    priority: Priority | None = None
    budget_min: OptNumber = None
    budget_max: OptNumber = None
    budget_currency: OptStr = None
    timeline_start: OptStr = None
    timeline_end: OptStr = None
    tech_stack: list[str] | None = None
    skills: list[str] | None = None
    industry_type: OptStr = None
    nda_required: bool | None = None


class RequirementCreate(RequirementFields):
    title: RequiredText
    description: RequiredText
    category: RequiredText


class RequirementUpdate(RequirementFields):
    title: OptStr = None
    description: OptStr = None
    category: OptStr = None
    status: BusinessStatus | None = None
    resubmit: bool = False


class InterestDecision(ApiModel):
    decision: Literal["ACCEPTED", "REJECTED"]


@router.get("/profile")
def get_profile(principal: Principal = Depends(gcc_user), table: DynamoTable = Depends(get_table)):
    return profile_service.get_profile(table=table, principal=principal)


@router.put("/profile")
def update_profile(
    body: GccProfileUpdate,
    principal: Principal = Depends(gcc_user),
    table: DynamoTable = Depends(get_table),
):
    return profile_service.update_profile(table=table, principal=principal, updates=body.to_fields())


@router.get("/startups")
def list_startups(search: str | None = None, industry: str | None = None, table: DynamoTable = Depends(get_table)):
    return profile_service.startup_directory(table=table, search=search, industry=industry)


@router.get("/interests")
def received_interests(principal: Principal = Depends(gcc_user), table: DynamoTable = Depends(get_table)):
    return interest_service.received_interests(table=table, owner_user_id=principal.id)


@router.post("/requirements/{requirement_id}/interests/{startup_user_id}/decision")
def decide_interest(
    requirement_id: str,
    startup_user_id: str,
    body: InterestDecision,
    principal: Principal = Depends(gcc_user),
    table: DynamoTable = Depends(get_table),
):
    return interest_service.decide_interest(
        table=table,
        owner_user_id=principal.id,
        requirement_id=requirement_id,
        startup_user_id=startup_user_id,
        decision=body.decision,
    )


@router.get("/active-deals")
def active_deals(principal: Principal = Depends(gcc_user), table: DynamoTable = Depends(get_table)):
    return interest_service.active_deals(table=table, owner_user_id=principal.id)


@router.get("/requirements")
def list_requirements(principal: Principal = Depends(gcc_user), table: DynamoTable = Depends(get_table)):
    return requirement_service.list_own(table=table, owner_user_id=principal.id)


@router.post("/requirements", status_code=201)
def create_requirement(
    body: RequirementCreate,
    principal: Principal = Depends(gcc_user),
    table: DynamoTable = Depends(get_table),
):
    return requirement_service.create_requirement(
        table=table, owner_user_id=principal.id, data=body.to_fields()
    )


@router.get("/requirements/{requirement_id}")
def get_requirement(
    requirement_id: str,
    principal: Principal = Depends(gcc_user),
    table: DynamoTable = Depends(get_table),
):
    return requirement_service.get_own_detail(
        table=table, owner_user_id=principal.id, requirement_id=requirement_id
    )


@router.put("/requirements/{requirement_id}")
def update_requirement(
    requirement_id: str,
    body: RequirementUpdate,
    principal: Principal = Depends(gcc_user),
    table: DynamoTable = Depends(get_table),
):
    return requirement_service.update_requirement(
        table=table,
        owner_user_id=principal.id,
        requirement_id=requirement_id,
        updates=body.to_fields(exclude={"resubmit"}),
        resubmit=body.resubmit,
    )


@router.delete("/requirements/{requirement_id}", status_code=204)
def delete_requirement(
    requirement_id: str,
    principal: Principal = Depends(gcc_user),
    table: DynamoTable = Depends(get_table),
):
    requirement_service.delete_requirement(
        table=table, owner_user_id=principal.id, requirement_id=requirement_id
    )
    return Response(status_code=204)
