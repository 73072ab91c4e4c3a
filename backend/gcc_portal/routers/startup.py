from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..db.dynamodb.table import DynamoTable
from ..modules.identity import Principal
from ..modules.profiles import profile_service
from .deps import get_table, startup_user
from .fields import ApiModel, OptInt, OptStr, Phone

router = APIRouter(tags=["startup"], dependencies=[Depends(startup_user)])


class StartupProfileUpdate(ApiModel):
    # Company
    company_name: OptStr = None
    legal_entity_name: OptStr = None
    founding_year: OptInt = None
    location: OptStr = None
    website: OptStr = None
    linkedin_page: OptStr = None
    contact_phone: Phone = None
    additional_email: OptStr = None
    mobile_primary: Phone = None
    mobile_secondary: Phone = None
    gst_number: OptStr = None
    # Team
    founder_names: OptStr = None
    team_size: OptStr = None
    key_team_members: Any = None
    # Market and offering
    industry: OptStr = None
    target_market: OptStr = None
    revenue_stage: OptStr = None
    customer_type: OptStr = None
    solution_description: OptStr = None
    primary_offering_type: OptStr = None
    deployment_stage: OptStr = None
    tech_stack: OptStr = None
    key_features: OptStr = None
    has_patents: bool | None = None
    patents_description: OptStr = None
    # GCC engagement
    co_creation_interests: OptStr = None
    gcc_seeking: OptStr = None
    gcc_co_creation_interest: OptStr = None
    past_collaborations: OptStr = None
    # Funding
    funding: OptStr = None
    total_funds_raised: OptStr = None
    investors: OptStr = None
    accelerator_programs: OptStr = None
    # Documents and consent
    pitch_deck_url: OptStr = None
    executive_summary_url: OptStr = None
    data_sharing_consent: bool | None = None
    profile_completion_percentage: OptInt = None


@router.get("/profile")
def get_profile(principal: Principal = Depends(startup_user), table: DynamoTable = Depends(get_table)):
    return profile_service.get_profile(table=table, principal=principal)


@router.put("/profile")
def update_profile(
    body: StartupProfileUpdate,
    principal: Principal = Depends(startup_user),
    table: DynamoTable = Depends(get_table),
):
    return profile_service.update_profile(table=table, principal=principal, updates=body.to_fields())
