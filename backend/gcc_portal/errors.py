from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class PortalError(Exception):
    """Base error for domain operations.

    Services raise these; a single FastAPI exception handler renders them as
    RFC7807 problem-details responses. `extensions` carries machine-readable
    extras (e.g. a stable `code` the client can switch on).
    """

    message: str
    extensions: dict[str, Any] = field(default_factory=dict)

    status_code = 500
    title = "Internal Server Error"

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class Unauthorized(PortalError):
    status_code = 401
    title = "Unauthorized"


@dataclass(slots=True)
class Forbidden(PortalError):
    status_code = 403
    title = "Forbidden"


@dataclass(slots=True)
class NotFound(PortalError):
    status_code = 404
    title = "Not Found"


@dataclass(slots=True)
class Conflict(PortalError):
    status_code = 409
    title = "Conflict"


@dataclass(slots=True)
class ValidationFailed(PortalError):
    status_code = 422
    title = "Validation Failed"
