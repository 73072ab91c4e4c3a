from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


_DEV_JWT_SECRET = "dev-secret-change-in-production"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore", populate_by_name=True)

    # Runtime
    environment: str = Field(default="development", validation_alias="NODE_ENV")
    port: int = Field(default=4000, validation_alias="PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # CORS / Frontend
    frontend_urls: str | None = Field(default=None, validation_alias="FRONTEND_URLS")

    # AWS / data
    aws_region: str = Field(default="us-east-1", validation_alias="AWS_REGION")
    ddb_table_name: str | None = Field(default=None, validation_alias="DDB_TABLE_NAME")
    # Point at DynamoDB Local for development, e.g. http://localhost:8000
    ddb_endpoint_url: str | None = Field(default=None, validation_alias="DDB_ENDPOINT_URL")

    # Auth (signed claims)
    jwt_secret: str | None = Field(default=None, validation_alias="JWT_SECRET")
    jwt_expires_in_seconds: int = Field(
        default=7 * 24 * 60 * 60, validation_alias="JWT_EXPIRES_IN_SECONDS"
    )
    login_rate_limit_rpm: int = Field(default=30, validation_alias="LOGIN_RATE_LIMIT_RPM")
    # Reverse proxies in front of the API; 0 means X-Forwarded-For is ignored.
    trusted_proxy_count: int = Field(default=0, ge=0, validation_alias="TRUSTED_PROXY_COUNT")

    # Admin seed (scripts/seed_admin.py)
    admin_email: str = Field(default="admin@gccstartup.local", validation_alias="ADMIN_EMAIL")
    admin_password: str | None = Field(default=None, validation_alias="ADMIN_PASSWORD")
    admin_name: str = Field(default="Portal Admin", validation_alias="ADMIN_NAME")

    # Tracing
    otel_enabled: bool = Field(default=False, validation_alias="OTEL_ENABLED")
    otel_service_name: str = Field(default="gcc-portal-backend", validation_alias="OTEL_SERVICE_NAME")
    otel_exporter_otlp_endpoint: str | None = Field(
        default=None, validation_alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )

    @property
    def normalized_environment(self) -> str:
        env = str(self.environment or "").strip().lower()
        if env in ("prod", "production"):
            return "production"
        if env in ("test", "testing"):
            return "test"
        if env in ("stage", "staging"):
            return "staging"
        return "development"

    @property
    def is_production(self) -> bool:
        return self.normalized_environment == "production"

    @property
    def is_development(self) -> bool:
        return self.normalized_environment == "development"

    @property
    def effective_jwt_secret(self) -> str:
        return str(self.jwt_secret or "").strip() or _DEV_JWT_SECRET

    @property
    def effective_table_name(self) -> str:
        return str(self.ddb_table_name or "").strip() or "gcc-portal-local"

    def require_in_production(self) -> None:
        """
        Enforce required settings in production.

        Development and test may run with partial config (the dev JWT secret,
        no table), production must be fully configured.
        """
        if not self.is_production:
            return

        missing: list[str] = []
        if not (self.jwt_secret and str(self.jwt_secret).strip()):
            missing.append("JWT_SECRET")
        if not (self.ddb_table_name and str(self.ddb_table_name).strip()):
            missing.append("DDB_TABLE_NAME")

        if missing:
            raise RuntimeError(
                "Missing required production environment variables: "
                + ", ".join(missing)
            )

    def to_log_safe_dict(self) -> dict[str, object]:
        """
        A redacted representation safe for structured logs / diagnostics.
        """
        def _has(v: object) -> bool:
            return v is not None and str(v).strip() != ""

        return {
            "environment": self.normalized_environment,
            "port": self.port,
            "frontend_urls": self.frontend_urls,
            "aws": {
                "aws_region": self.aws_region,
                "ddb_table_name": self.ddb_table_name,
                "ddb_endpoint_url": self.ddb_endpoint_url,
            },
            "auth": {
                "jwt_secret_configured": _has(self.jwt_secret),
                "jwt_expires_in_seconds": self.jwt_expires_in_seconds,
                "login_rate_limit_rpm": self.login_rate_limit_rpm,
                "trusted_proxy_count": self.trusted_proxy_count,
            },
            "otel_enabled": bool(self.otel_enabled),
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    s = Settings()
    s.require_in_production()
    return s
