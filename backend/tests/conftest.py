from __future__ import annotations

import sys
from itertools import count
from pathlib import Path
from typing import Any

import pytest

# Ensure `backend/` is on sys.path so `import gcc_portal.*` works in tests.
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from fastapi.testclient import TestClient  # noqa: E402
from moto import mock_aws  # noqa: E402

from gcc_portal.auth.passwords import PasswordHasher  # noqa: E402
from gcc_portal.db.dynamodb.client import clear_client_cache  # noqa: E402
from gcc_portal.db.dynamodb.errors import DdbThrottled  # noqa: E402
from gcc_portal.db.dynamodb.schema import create_main_table  # noqa: E402
from gcc_portal.db.dynamodb.table import DynamoTable  # noqa: E402
from gcc_portal.main import create_app  # noqa: E402
from gcc_portal.modules.accounts import account_service  # noqa: E402
from gcc_portal.settings import Settings  # noqa: E402

TABLE_NAME = "gcc-portal-test"
REGION = "us-east-1"
PASSWORD = "secret123"
ADMIN_EMAIL = "admin@portal.io"


@pytest.fixture
def aws_env(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)


@pytest.fixture
def table(aws_env):
    with mock_aws():
        # Clients built outside the mock would talk to real AWS.
        clear_client_cache()
        create_main_table(table_name=TABLE_NAME, region_name=REGION)
        yield DynamoTable(table_name=TABLE_NAME, region_name=REGION)
    clear_client_cache()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        jwt_secret="test-secret",
        ddb_table_name=TABLE_NAME,
        aws_region=REGION,
        login_rate_limit_rpm=1000,
    )


@pytest.fixture
def app(table, settings):
    app = create_app(settings)
    # Cheap hashing keeps the suite fast.
    app.state.hasher = PasswordHasher(rounds=4)
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


class Portal:
    """Small driver for end-to-end flows over the HTTP API."""

    password = PASSWORD

    def __init__(self, client: TestClient, table: DynamoTable):
        self.client = client
        self.table = table
        self._seq = count(1)

    def register(self, role: str = "GCC", email: str | None = None, **extra: Any) -> dict[str, Any]:
        n = next(self._seq)
        body = {
            "name": extra.pop("name", f"{role.title()} User {n}"),
            "email": email or f"{role.lower()}{n}@portal.io",
            "password": PASSWORD,
            "role": role,
            "description": extra.pop("description", f"{role} company number {n}"),
            **extra,
        }
        r = self.client.post("/api/auth/register", json=body)
        assert r.status_code == 201, r.text
        return r.json()["user"]

    def login(self, email: str, password: str = PASSWORD) -> dict[str, str]:
        r = self.client.post("/api/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['token']}"}

    def admin(self) -> dict[str, str]:
        account_service.seed_admin(
            table=self.table,
            hasher=PasswordHasher(rounds=4),
            email=ADMIN_EMAIL,
            password=PASSWORD,
            name="Portal Admin",
        )
        return self.login(ADMIN_EMAIL)

    def approved(self, role: str = "GCC", **extra: Any) -> tuple[dict[str, Any], dict[str, str]]:
        user = self.register(role, **extra)
        account_service.approve_account(table=self.table, user_id=user["id"])
        return user, self.login(user["email"])

    def create_requirement(self, headers: dict[str, str], **fields: Any) -> dict[str, Any]:
        body = {
            "title": "Cloud migration partner",
            "description": "Move legacy workloads to the cloud",
            "category": "Cloud",
            **fields,
        }
        r = self.client.post("/api/gcc/requirements", json=body, headers=headers)
        assert r.status_code == 201, r.text
        return r.json()

    def express_interest(self, headers: dict[str, str], requirement_id: str, **payload: Any):
        return self.client.post(
            f"/api/requirements/{requirement_id}/express-interest",
            json={"message": "We can help", **payload},
            headers=headers,
        )


@pytest.fixture
def portal(client, table) -> Portal:
    return Portal(client, table)


@pytest.fixture
def failing_batch_delete(monkeypatch):
    """Make the next DynamoTable.batch_delete call fail as throttled, once."""
    real = DynamoTable.batch_delete
    calls = {"n": 0}

    def _batch_delete(self, *, keys):
        calls["n"] += 1
        if calls["n"] == 1:
            raise DdbThrottled(message="DynamoDB request throttled or unavailable", retryable=True)
        return real(self, keys=keys)

    monkeypatch.setattr(DynamoTable, "batch_delete", _batch_delete)
    return calls
