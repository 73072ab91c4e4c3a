from __future__ import annotations

import pytest

from gcc_portal.errors import Forbidden, Unauthorized
from gcc_portal.modules.identity import Principal, require_approved, require_authenticated, require_role
from gcc_portal.modules.identity.access import (
    MSG_AUTH_REQUIRED,
    MSG_INSUFFICIENT_PERMISSIONS,
    MSG_PENDING_APPROVAL,
)


def _p(role: str = "GCC", approval: str = "APPROVED") -> Principal:
    return Principal(id="usr_1", email="a@b.io", name="A", role=role, approval_status=approval)


def test_missing_principal_is_unauthorized_for_every_guard():
    for guard in (require_authenticated, require_approved):
        with pytest.raises(Unauthorized) as ei:
            guard(None)
        assert ei.value.message == MSG_AUTH_REQUIRED

    with pytest.raises(Unauthorized):
        require_role(None, {"ADMIN"})


def test_unapproved_principal_is_forbidden_with_code():
    with pytest.raises(Forbidden) as ei:
        require_approved(_p(approval="PENDING"))
    assert ei.value.message == MSG_PENDING_APPROVAL
    assert ei.value.extensions["code"] == "PENDING_APPROVAL"


def test_role_guard_checks_approval_before_role():
    # Pending GCC hitting an ADMIN route is told about approval, not role.
    with pytest.raises(Forbidden) as ei:
        require_role(_p(role="GCC", approval="PENDING"), {"ADMIN"})
    assert ei.value.extensions.get("code") == "PENDING_APPROVAL"


def test_wrong_role_is_forbidden():
    with pytest.raises(Forbidden) as ei:
        require_role(_p(role="STARTUP"), {"GCC"})
    assert ei.value.message == MSG_INSUFFICIENT_PERMISSIONS


def test_guards_return_principal_on_success():
    p = _p(role="ADMIN")
    assert require_authenticated(p) is p
    assert require_approved(p) is p
    assert require_role(p, ("ADMIN",)) is p


def test_route_groups_apply_guards(portal, client):
    assert client.get("/api/gcc/requirements").status_code == 401
    assert client.get("/api/admin/stats").status_code == 401

    _, startup = portal.approved("STARTUP")
    r = client.get("/api/gcc/requirements", headers=startup)
    assert r.status_code == 403
    assert r.json()["detail"] == MSG_INSUFFICIENT_PERMISSIONS

    _, gcc = portal.approved("GCC")
    assert client.get("/api/admin/stats", headers=gcc).status_code == 403
    assert client.post("/api/requirements/req_x/express-interest", json={}, headers=gcc).status_code == 403


def test_public_reads_do_not_require_identity(client):
    assert client.get("/api/requirements").status_code == 200
    # A garbage token is ignored on public routes.
    r = client.get("/api/requirements", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 200


def test_invalid_token_on_protected_route_is_unauthorized(client):
    r = client.get("/api/users/profile", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["detail"] == MSG_AUTH_REQUIRED
