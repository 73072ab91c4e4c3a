from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


def _health(request: Request) -> dict[str, object]:
    settings = request.app.state.settings
    return {
        "message": "GCC Startup Portal API",
        "version": request.app.version,
        "status": "running",
        "environment": settings.normalized_environment,
        "dynamodb": "configured" if settings.ddb_table_name else "local-default",
    }


@router.get("/")
def root(request: Request):
    return _health(request)


@router.get("/api/health")
def health(request: Request):
    return _health(request)
