from __future__ import annotations

import time

import pytest
from jose import jwt

from gcc_portal.auth.claims import ClaimsError, ClaimsService
from gcc_portal.auth.passwords import PasswordHasher
from gcc_portal.modules.identity import resolve
from gcc_portal.modules.identity.principal import bearer_token, claims_for_user


def _claims() -> ClaimsService:
    return ClaimsService(secret="unit-secret", default_ttl_seconds=3600)


def _user(**over):
    return {
        "id": "usr_1",
        "email": "gcc@acme.io",
        "name": "Gina",
        "role": "GCC",
        "approvalStatus": "APPROVED",
        **over,
    }


def test_resolve_returns_snapshot_embedded_at_issue():
    svc = _claims()
    token = svc.issue(claims_for_user(_user()))
    p = resolve(token, claims_service=svc)
    assert p is not None
    assert (p.id, p.email, p.name, p.role, p.approval_status) == (
        "usr_1",
        "gcc@acme.io",
        "Gina",
        "GCC",
        "APPROVED",
    )


def test_admin_claims_are_always_approved():
    claims = claims_for_user(_user(role="ADMIN", approvalStatus="PENDING"))
    assert claims["approval_status"] == "APPROVED"


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
def test_resolve_absent_or_malformed_is_none(token):
    assert resolve(token, claims_service=_claims()) is None


def test_resolve_rejects_wrong_signature_and_expiry():
    svc = _claims()
    other = ClaimsService(secret="other-secret", default_ttl_seconds=3600)
    assert resolve(other.issue(claims_for_user(_user())), claims_service=svc) is None

    expired = jwt.encode(
        {**claims_for_user(_user()), "iat": int(time.time()) - 100, "exp": int(time.time()) - 10},
        "unit-secret",
        algorithm="HS256",
    )
    assert resolve(expired, claims_service=svc) is None
    with pytest.raises(ClaimsError):
        svc.verify(expired)


def test_token_without_role_resolves_to_none():
    svc = _claims()
    assert resolve(svc.issue({"id": "usr_1"}), claims_service=svc) is None


def test_bearer_token_parsing():
    assert bearer_token("Bearer abc") == "abc"
    assert bearer_token("bearer abc") == "abc"
    assert bearer_token("Basic abc") is None
    assert bearer_token("Bearer") is None
    assert bearer_token(None) is None


def test_password_hash_round_trip():
    h = PasswordHasher(rounds=4)
    digest = h.hash("secret123")
    assert digest != "secret123"
    assert h.verify("secret123", digest)
    assert not h.verify("wrong", digest)
    assert not h.verify("secret123", "not-a-bcrypt-hash")
    assert not h.verify("secret123", None)
