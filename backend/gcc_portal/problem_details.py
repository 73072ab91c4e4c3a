from __future__ import annotations

from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.responses import ORJSONResponse

PROBLEM_JSON = "application/problem+json"

# Titles the API has always used where they differ from the HTTP phrase.
_TITLES = {
    422: "Unprocessable Entity",
    500: "Internal Server Error",
}


def default_title(status_code: int) -> str:
    if status_code in _TITLES:
        return _TITLES[status_code]
    if status_code > 500:
        return _TITLES[500]
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def request_id_of(request: Request) -> str | None:
    """Id set by RequestContextMiddleware, else whatever the client sent."""
    rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
    return str(rid) if rid else None


def _hide_server_detail(request: Request, status_code: int) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return status_code >= 500 and bool(getattr(settings, "is_production", False))


def problem_payload(
    *,
    request: Request,
    status_code: int,
    title: str | None = None,
    detail: str | None = None,
    errors: list[dict[str, Any]] | None = None,
    extensions: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    RFC 7807 body. Optional members are omitted rather than sent as null;
    extension members live under `extensions` so they cannot shadow the
    standard ones.
    """
    status_code = int(status_code)
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": title or default_title(status_code),
        "status": status_code,
    }
    optional = {
        "detail": str(detail) if detail else None,
        "instance": request.url.path or None,
        "requestId": request_id_of(request),
        "errors": errors or None,
        "extensions": extensions or None,
    }
    body.update({k: v for k, v in optional.items() if v is not None})
    return body


def problem_response(
    *,
    request: Request,
    status_code: int,
    title: str | None = None,
    detail: str | None = None,
    errors: list[dict[str, Any]] | None = None,
    extensions: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> ORJSONResponse:
    if _hide_server_detail(request, int(status_code)):
        detail = None
    return ORJSONResponse(
        status_code=int(status_code),
        content=problem_payload(
            request=request,
            status_code=status_code,
            title=title,
            detail=detail,
            errors=errors,
            extensions=extensions,
        ),
        media_type=PROBLEM_JSON,
        headers=headers,
    )
