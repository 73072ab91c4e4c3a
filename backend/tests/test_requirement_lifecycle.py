from __future__ import annotations

import re

import pytest

from gcc_portal.modules.requirements.lifecycle import (
    MODERATION_ACTIONS,
    can_moderate,
    is_active_deal,
    moderation_transition,
    normalize_remarks,
)
from gcc_portal.repositories import interests_repo


def test_moderation_table():
    assert moderation_transition("approve") == ("PENDING_APPROVAL", "APPROVED", False)
    assert moderation_transition("send-back") == ("PENDING_APPROVAL", "SENT_BACK", True)
    assert moderation_transition("reject") == ("PENDING_APPROVAL", "REJECTED", True)
    assert all(src == "PENDING_APPROVAL" for src, _, _ in MODERATION_ACTIONS.values())
    with pytest.raises(ValueError):
        moderation_transition("publish")
    assert can_moderate("PENDING_APPROVAL")
    assert not can_moderate("SENT_BACK")


def test_remarks_and_active_deal_predicates():
    assert normalize_remarks("  fix budget  ") == "fix budget"
    assert normalize_remarks("   ") is None
    assert normalize_remarks(None) is None
    assert is_active_deal({"status": "IN_PROGRESS"}, 0)
    assert is_active_deal({"status": "OPEN"}, 1)
    assert not is_active_deal({"status": "CLOSED"}, 0)


def test_create_defaults_and_public_visibility(portal, client):
    _, gcc = portal.approved("GCC")
    req = portal.create_requirement(gcc, budgetMin="", budgetMax=5000, techStack=["python"])
    assert req["status"] == "OPEN"
    assert req["approvalStatus"] == "PENDING_APPROVAL"
    assert req["priority"] == "MEDIUM"
    assert req["budgetCurrency"] == "USD"
    assert req["ndaRequired"] is False
    assert req["budgetMin"] is None
    assert req["budgetMax"] == 5000
    assert req["anonymizedId"].startswith("GCC-")
    assert re.fullmatch(r"GCC-[0-9A-F]{10}", req["anonymizedId"])

    # Visibility follows the business axis only: pending moderation is listed.
    listed = client.get("/api/requirements").json()
    assert [r["id"] for r in listed] == [req["id"]]
    assert "ownerUserId" not in listed[0]
    assert "approvalStatus" not in listed[0]
    assert listed[0]["anonymizedId"] == req["anonymizedId"]
    assert listed[0]["interestCount"] == 0

    detail = client.get(f"/api/requirements/{req['id']}")
    assert detail.status_code == 200
    assert "ownerUserId" not in detail.json()


def test_create_requires_title_description_category(portal, client):
    _, gcc = portal.approved("GCC")
    r = client.post("/api/gcc/requirements", json={"title": "T", "category": "C"}, headers=gcc)
    assert r.status_code == 422
    r = client.post(
        "/api/gcc/requirements",
        json={"title": "T", "description": " ", "category": "C"},
        headers=gcc,
    )
    assert r.status_code == 422


def test_closed_requirement_is_hidden_from_public(portal, client):
    _, gcc = portal.approved("GCC")
    req = portal.create_requirement(gcc)
    r = client.put(f"/api/gcc/requirements/{req['id']}", json={"status": "CLOSED"}, headers=gcc)
    assert r.json()["status"] == "CLOSED"
    assert client.get("/api/requirements").json() == []
    assert client.get(f"/api/requirements/{req['id']}").status_code == 404

    # Business status may move in any direction.
    r = client.put(f"/api/gcc/requirements/{req['id']}", json={"status": "OPEN"}, headers=gcc)
    assert r.json()["status"] == "OPEN"


def test_public_list_filters_and_ranks(portal, client):
    _, gcc = portal.approved("GCC")
    portal.create_requirement(gcc, title="Payments platform", description="Card rails", category="Fintech")
    portal.create_requirement(gcc, title="Data lake", description="Payments analytics", category="Data")
    portal.create_requirement(gcc, title="HR chatbot", description="Employee help", category="AI")

    titles = [r["title"] for r in client.get("/api/requirements", params={"search": "payments"}).json()]
    assert titles == ["Payments platform", "Data lake"]

    by_cat = client.get("/api/requirements", params={"category": "AI"}).json()
    assert [r["title"] for r in by_cat] == ["HR chatbot"]

    newest_first = [r["title"] for r in client.get("/api/requirements").json()]
    assert newest_first == ["HR chatbot", "Data lake", "Payments platform"]


def test_moderation_transitions_and_remarks(portal, client):
    admin = portal.admin()
    _, gcc = portal.approved("GCC")
    a = portal.create_requirement(gcc, title="A")
    b = portal.create_requirement(gcc, title="B")
    c = portal.create_requirement(gcc, title="C")

    queue = client.get("/api/admin/requirement-approvals", headers=admin).json()
    assert [r["id"] for r in queue] == [a["id"], b["id"], c["id"]]
    assert queue[0]["gccName"]

    r = client.post(
        f"/api/admin/requirement-approvals/{a['id']}/send-back",
        json={"remarks": "  add budget  "},
        headers=admin,
    )
    assert r.status_code == 200
    assert r.json()["approvalStatus"] == "SENT_BACK"
    assert r.json()["adminRemarks"] == "add budget"
    assert r.json()["adminRemarksAt"]

    r = client.post(
        f"/api/admin/requirement-approvals/{b['id']}/reject", json={"remarks": "   "}, headers=admin
    )
    assert r.json()["approvalStatus"] == "REJECTED"
    assert r.json()["adminRemarks"] is None
    assert r.json()["adminRemarksAt"]

    r = client.post(f"/api/admin/requirement-approvals/{c['id']}/approve", headers=admin)
    assert r.json()["approvalStatus"] == "APPROVED"
    assert r.json()["adminRemarks"] is None

    for rid in (a["id"], b["id"], c["id"], "req_missing"):
        for action in ("approve", "send-back", "reject"):
            r = client.post(f"/api/admin/requirement-approvals/{rid}/{action}", headers=admin)
            assert r.status_code == 409
            assert r.json()["detail"] == "Requirement not found or already processed"


def test_resubmit_after_send_back(portal, client):
    admin = portal.admin()
    _, gcc = portal.approved("GCC")
    req = portal.create_requirement(gcc, title="Old title")
    client.post(
        f"/api/admin/requirement-approvals/{req['id']}/send-back",
        json={"remarks": "clarify scope"},
        headers=admin,
    )

    # An edit without the flag keeps the requirement SENT_BACK.
    r = client.put(f"/api/gcc/requirements/{req['id']}", json={"title": "Better"}, headers=gcc)
    assert r.json()["approvalStatus"] == "SENT_BACK"
    assert r.json()["adminRemarks"] == "clarify scope"

    r = client.put(
        f"/api/gcc/requirements/{req['id']}",
        json={"description": "Clear scope", "resubmit": True},
        headers=gcc,
    )
    body = r.json()
    assert body["approvalStatus"] == "PENDING_APPROVAL"
    assert body["adminRemarks"] is None
    assert body["adminRemarksAt"] is None
    assert body["title"] == "Better"
    assert body["description"] == "Clear scope"

    assert client.post(f"/api/admin/requirement-approvals/{req['id']}/approve", headers=admin).status_code == 200


def test_resubmit_flag_is_ignored_outside_sent_back(portal, client):
    admin = portal.admin()
    _, gcc = portal.approved("GCC")
    req = portal.create_requirement(gcc)
    client.post(f"/api/admin/requirement-approvals/{req['id']}/reject", headers=admin)

    r = client.put(
        f"/api/gcc/requirements/{req['id']}", json={"title": "Retry", "resubmit": True}, headers=gcc
    )
    assert r.status_code == 200
    assert r.json()["title"] == "Retry"
    assert r.json()["approvalStatus"] == "REJECTED"


def test_update_is_coalesce_and_owner_only(portal, client):
    _, owner = portal.approved("GCC")
    _, other = portal.approved("GCC")
    req = portal.create_requirement(owner, priority="HIGH", skills=["go"])

    r = client.put(
        f"/api/gcc/requirements/{req['id']}",
        json={"title": None, "budgetMax": 900, "skills": ["rust"]},
        headers=owner,
    )
    body = r.json()
    assert body["title"] == req["title"]
    assert body["priority"] == "HIGH"
    assert body["budgetMax"] == 900
    assert body["skills"] == ["rust"]

    for method in ("get", "put", "delete"):
        kwargs = {"json": {"title": "x"}} if method == "put" else {}
        r = getattr(client, method)(f"/api/gcc/requirements/{req['id']}", headers=other, **kwargs)
        assert r.status_code == 404
        assert r.json()["detail"] == "Requirement not found"

    r = client.put("/api/gcc/requirements/req_missing", json={"title": "x"}, headers=owner)
    assert r.status_code == 404

    r = client.put(f"/api/gcc/requirements/{req['id']}", json={"status": "DONE"}, headers=owner)
    assert r.status_code == 422


def test_delete_cascades_interests(portal, client, table):
    _, gcc = portal.approved("GCC")
    _, startup = portal.approved("STARTUP")
    req = portal.create_requirement(gcc)
    assert portal.express_interest(startup, req["id"]).status_code == 201

    r = client.delete(f"/api/gcc/requirements/{req['id']}", headers=gcc)
    assert r.status_code == 204
    assert client.get(f"/api/gcc/requirements/{req['id']}", headers=gcc).status_code == 404
    assert interests_repo.list_for_requirement(table=table, requirement_id=req["id"]) == []
    assert client.get("/api/requirements/my/interests", headers=startup).json() == []


def test_own_list_and_detail_with_applications(portal, client):
    _, gcc = portal.approved("GCC")
    startup_user, startup = portal.approved("STARTUP")
    req = portal.create_requirement(gcc)
    portal.express_interest(startup, req["id"], proposedBudget=1200)

    own = client.get("/api/gcc/requirements", headers=gcc).json()
    assert own[0]["id"] == req["id"]
    assert own[0]["interestCount"] == 1
    assert own[0]["ownerUserId"]

    detail = client.get(f"/api/gcc/requirements/{req['id']}", headers=gcc).json()
    app = detail["applications"][0]
    assert app["startupUserId"] == startup_user["id"]
    assert app["startupEmail"] == startup_user["email"]
    assert app["proposedBudget"] == 1200


def test_delete_resumes_after_interrupted_cascade(portal, client, table, failing_batch_delete):
    _, gcc = portal.approved("GCC")
    _, startup = portal.approved("STARTUP")
    req = portal.create_requirement(gcc)
    assert portal.express_interest(startup, req["id"]).status_code == 201

    r = client.delete(f"/api/gcc/requirements/{req['id']}", headers=gcc)
    assert r.status_code == 503
    # The requirement survives and is closed to new interest.
    own = client.get(f"/api/gcc/requirements/{req['id']}", headers=gcc)
    assert own.status_code == 200
    assert own.json()["status"] == "CLOSED"
    _, late = portal.approved("STARTUP")
    assert portal.express_interest(late, req["id"]).status_code == 404

    r = client.delete(f"/api/gcc/requirements/{req['id']}", headers=gcc)
    assert r.status_code == 204
    assert interests_repo.list_for_requirement(table=table, requirement_id=req["id"]) == []
    assert interests_repo.list_interests(table=table) == []
    assert client.get(f"/api/requirements/{req['id']}").status_code == 404


def test_delete_by_non_owner_is_not_found_and_changes_nothing(portal, client):
    _, gcc = portal.approved("GCC")
    _, other = portal.approved("GCC")
    req = portal.create_requirement(gcc)

    r = client.delete(f"/api/gcc/requirements/{req['id']}", headers=other)
    assert r.status_code == 404
    assert client.get(f"/api/gcc/requirements/{req['id']}", headers=gcc).json()["status"] == "OPEN"


def test_interest_counts_are_per_requirement(portal, client):
    _, gcc = portal.approved("GCC")
    first = portal.create_requirement(gcc, title="First")
    second = portal.create_requirement(gcc, title="Second")
    for _ in range(3):
        portal.express_interest(portal.approved("STARTUP")[1], first["id"])
    portal.express_interest(portal.approved("STARTUP")[1], second["id"])

    own = client.get("/api/gcc/requirements", headers=gcc).json()
    assert {r["id"]: r["interestCount"] for r in own} == {first["id"]: 3, second["id"]: 1}
    assert client.get(f"/api/requirements/{first['id']}").json()["interestCount"] == 3
    listed = {r["id"]: r["interestCount"] for r in client.get("/api/requirements").json()}
    assert listed == {first["id"]: 3, second["id"]: 1}
