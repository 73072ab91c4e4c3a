from __future__ import annotations

_LOCAL_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:5173",
)


def build_allowed_origins(*, frontend_urls: str | None, include_local: bool) -> list[str]:
    """
    CORS allowlist: FRONTEND_URLS (comma separated) plus the usual local dev
    servers outside production.
    """
    allowed: set[str] = set(_LOCAL_ORIGINS) if include_local else set()
    for origin in str(frontend_urls or "").split(","):
        o = origin.strip().rstrip("/")
        if o:
            allowed.add(o)
    return sorted(allowed)
