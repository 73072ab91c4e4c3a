from __future__ import annotations

from typing import Any

from boto3.dynamodb.conditions import Key

from ..db.dynamodb.schema import GSI1
from ..db.dynamodb.table import DynamoTable
from ..modules.identity.roles import ROLE_GCC, ROLE_STARTUP
from .common import now_iso, set_clause, strip_internal, to_ddb, type_pk

PROFILE_TYPE = "PROFILE"

GCC_PROFILE_FIELDS = (
    "companyName",
    "parentCompany",
    "yearEstablished",
    "industry",
    "location",
    "headquartersLocation",
    "gccLocations",
    "size",
    "description",
    "website",
    "contactPerson",
    "contactDesignation",
    "contactEmail",
    "phone",
    "mobilePrimary",
    "mobileSecondary",
    "additionalEmail",
    "linkedin",
    "gstNumber",
    "alternateContactPerson",
    "alternateContactDesignation",
    "alternateContactEmail",
    "alternateContactPhone",
)

STARTUP_PROFILE_FIELDS = (
    "companyName",
    "legalEntityName",
    "foundingYear",
    "location",
    "website",
    "linkedinPage",
    "contactPhone",
    "additionalEmail",
    "mobilePrimary",
    "mobileSecondary",
    "gstNumber",
    "founderNames",
    "teamSize",
    "keyTeamMembers",
    "industry",
    "targetMarket",
    "revenueStage",
    "customerType",
    "solutionDescription",
    "primaryOfferingType",
    "deploymentStage",
    "techStack",
    "keyFeatures",
    "hasPatents",
    "patentsDescription",
    "coCreationInterests",
    "gccSeeking",
    "gccCoCreationInterest",
    "pastCollaborations",
    "funding",
    "totalFundsRaised",
    "investors",
    "acceleratorPrograms",
    "pitchDeckUrl",
    "executiveSummaryUrl",
    "dataSharingConsent",
    "profileCompletionPercentage",
    "reverificationRequired",
)

PROFILE_FIELDS = {ROLE_GCC: GCC_PROFILE_FIELDS, ROLE_STARTUP: STARTUP_PROFILE_FIELDS}


def profile_key(user_id: str) -> dict[str, str]:
    uid = str(user_id or "").strip()
    if not uid:
        raise ValueError("user_id is required")
    return {"pk": f"USER#{uid}", "sk": "PROFILE"}


def normalize_profile_for_api(item: dict[str, Any] | None) -> dict[str, Any] | None:
    if not item:
        return None
    raw = strip_internal(item)
    fields = PROFILE_FIELDS.get(str(raw.get("profileType") or ""), ())
    # Every known field is present in the response; unset ones are null.
    out: dict[str, Any] = {"userId": raw.get("userId"), "profileType": raw.get("profileType")}
    for f in fields:
        out[f] = raw.get(f)
    out["createdAt"] = raw.get("createdAt")
    out["updatedAt"] = raw.get("updatedAt")
    return out


def build_profile_item(*, user_id: str, profile_type: str, fields: dict[str, Any]) -> dict[str, Any]:
    allowed = PROFILE_FIELDS[profile_type]
    now = now_iso()
    item: dict[str, Any] = {
        **profile_key(user_id),
        "entityType": "Profile",
        "userId": user_id,
        "profileType": profile_type,
        "createdAt": now,
        "updatedAt": now,
        "gsi1pk": type_pk(PROFILE_TYPE),
        "gsi1sk": f"{profile_type}#{user_id}",
    }
    for k, v in fields.items():
        if k in allowed and v is not None:
            item[k] = to_ddb(v)
    if profile_type == ROLE_STARTUP:
        item.setdefault("reverificationRequired", False)
    return item


def get_profile(*, table: DynamoTable, user_id: str) -> dict[str, Any] | None:
    return normalize_profile_for_api(table.get_item(key=profile_key(user_id)))


def list_profiles(*, table: DynamoTable, profile_type: str) -> list[dict[str, Any]]:
    items = table.query_all(
        index_name=GSI1,
        key_condition_expression=Key("gsi1pk").eq(type_pk(PROFILE_TYPE))
        & Key("gsi1sk").begins_with(f"{profile_type}#"),
        scan_index_forward=True,
    )
    return [p for p in (normalize_profile_for_api(it) for it in items) if p]


def profiles_by_user(*, table: DynamoTable, profile_type: str) -> dict[str, dict[str, Any]]:
    return {str(p["userId"]): p for p in list_profiles(table=table, profile_type=profile_type)}


def update_profile(
    *,
    table: DynamoTable,
    user_id: str,
    profile_type: str,
    updates: dict[str, Any],
) -> dict[str, Any]:
    """
    COALESCE-style partial update: None values are skipped, so a field can
    be set or overwritten but never cleared. Unknown fields are ignored.

    Conditioned on the profile existing with the expected type; raises
    DdbConflict otherwise.
    """
    allowed = PROFILE_FIELDS[profile_type]
    changes = {k: v for k, v in updates.items() if k in allowed and v is not None}
    changes["updatedAt"] = now_iso()

    parts, names, values = set_clause(changes)
    names["#ptype"] = "profileType"
    values[":ptype"] = profile_type
    updated = table.update_item(
        key=profile_key(user_id),
        update_expression="SET " + ", ".join(parts),
        condition_expression="attribute_exists(pk) AND #ptype = :ptype",
        expression_attribute_names=names,
        expression_attribute_values=values,
    )
    return normalize_profile_for_api(updated) or {}


def set_reverification_required(*, table: DynamoTable, user_id: str) -> dict[str, Any]:
    updated = table.update_item(
        key=profile_key(user_id),
        update_expression="SET reverificationRequired = :t, updatedAt = :now",
        condition_expression="attribute_exists(pk) AND profileType = :startup",
        expression_attribute_names=None,
        expression_attribute_values={":t": True, ":now": now_iso(), ":startup": ROLE_STARTUP},
    )
    return normalize_profile_for_api(updated) or {}
