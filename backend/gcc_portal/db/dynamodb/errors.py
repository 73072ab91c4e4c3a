from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class DdbError(Exception):
    """Base error for DynamoDB operations.

    Repositories let these propagate; services translate the expected ones
    (a failed condition) into domain errors, the rest reach the FastAPI
    handler and render as problem-details responses.
    """

    message: str
    operation: str | None = None
    table_name: str | None = None
    key: dict[str, Any] | None = None
    aws_request_id: str | None = None
    retryable: bool = False
    cause: Exception | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class DdbConflict(DdbError):
    """A ConditionExpression did not hold.

    For TransactWriteItems, `cancellation_codes` lists one code per
    transaction item in request order ("None" for items that passed), so
    callers can tell which precondition failed.
    """

    cancellation_codes: list[str] = field(default_factory=list)


@dataclass(slots=True)
class DdbValidation(DdbError):
    pass


@dataclass(slots=True)
class DdbThrottled(DdbError):
    pass


@dataclass(slots=True)
class DdbUnavailable(DdbError):
    pass


@dataclass(slots=True)
class DdbInternal(DdbError):
    pass
