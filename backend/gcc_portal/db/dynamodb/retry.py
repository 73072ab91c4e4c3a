from __future__ import annotations

import random
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from .errors import (
    DdbConflict,
    DdbError,
    DdbInternal,
    DdbThrottled,
    DdbUnavailable,
    DdbValidation,
)

T = TypeVar("T")

CONDITION_FAILED = "ConditionalCheckFailed"


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_attempts: int = 6
    base_delay_s: float = 0.05
    max_delay_s: float = 1.5

    def backoff(self, attempt: int) -> float:
        """Full-jitter exponential delay before retry number `attempt`."""
        ceiling = min(self.max_delay_s, self.base_delay_s * (2 ** max(0, attempt - 1)))
        return random.random() * ceiling


# Error code -> (error class, message, retryable). Codes not listed here fall
# through to DdbInternal.
_CODE_MAP: dict[str, tuple[type[DdbError], str, bool]] = {
    "ConditionalCheckFailedException": (DdbConflict, "DynamoDB conditional check failed", False),
    "ValidationException": (DdbValidation, "DynamoDB request validation failed", False),
    "ParamValidationError": (DdbValidation, "DynamoDB request validation failed", False),
    "AccessDeniedException": (DdbUnavailable, "DynamoDB table unavailable", False),
    "UnrecognizedClientException": (DdbUnavailable, "DynamoDB table unavailable", False),
    "ResourceNotFoundException": (DdbUnavailable, "DynamoDB table unavailable", False),
}

_THROTTLE_CODES = {
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "RequestLimitExceeded",
    "InternalServerError",
    "ServiceUnavailable",
    "TransactionConflictException",
}

# Per-item reasons that make a cancelled transaction worth retrying.
_TRANSIENT_REASONS = {"TransactionConflict", "TransactionConflictException", "ThrottlingError"}

_REASONS_IN_MESSAGE = re.compile(r"\[([A-Za-z, ]+)\]\s*$")


def _response(e: ClientError) -> dict[str, Any]:
    return e.response or {}


def _error_code(e: ClientError) -> str:
    return str(_response(e).get("Error", {}).get("Code") or "")


def _aws_request_id(e: ClientError) -> str | None:
    return _response(e).get("ResponseMetadata", {}).get("RequestId")


def cancellation_codes(e: ClientError) -> list[str]:
    """
    Per-item codes of a TransactionCanceledException, in request order.

    Prefers the structured CancellationReasons; falls back to the bracketed
    list DynamoDB appends to the message ("... [ConditionalCheckFailed, None]").
    """
    reasons = _response(e).get("CancellationReasons") or []
    if reasons:
        return [str((r or {}).get("Code") or "None") for r in reasons]
    m = _REASONS_IN_MESSAGE.search(str(_response(e).get("Error", {}).get("Message") or ""))
    if not m:
        return []
    return [c.strip() or "None" for c in m.group(1).split(",")]


def _map_client_error(e: ClientError, **ctx: Any) -> DdbError:
    code = _error_code(e)
    ctx.update(aws_request_id=_aws_request_id(e), cause=e)

    if code == "TransactionCanceledException":
        codes = cancellation_codes(e)
        if CONDITION_FAILED in codes:
            return DdbConflict(
                message="DynamoDB transaction condition failed",
                retryable=False,
                cancellation_codes=codes,
                **ctx,
            )
        if any(c in _TRANSIENT_REASONS for c in codes):
            return DdbThrottled(message="DynamoDB transaction conflicted", retryable=True, **ctx)

    if code in _CODE_MAP:
        cls, message, retryable = _CODE_MAP[code]
        return cls(message=message, retryable=retryable, **ctx)

    if code in _THROTTLE_CODES:
        return DdbThrottled(message="DynamoDB request throttled or unavailable", retryable=True, **ctx)

    return DdbInternal(message=f"DynamoDB request failed ({code or 'ClientError'})", **ctx)


def map_error(exc: Exception, **ctx: Any) -> DdbError:
    """Translate a botocore failure into the DdbError family."""
    if isinstance(exc, DdbError):
        return exc
    if isinstance(exc, ClientError):
        return _map_client_error(exc, **ctx)
    if isinstance(exc, BotoCoreError):
        return DdbUnavailable(message="DynamoDB client error", retryable=True, cause=exc, **ctx)
    return DdbInternal(message="Unexpected DynamoDB error", cause=exc, **ctx)


def ddb_call(
    operation: str,
    fn: Callable[[], T],
    *,
    table_name: str | None = None,
    key: dict[str, Any] | None = None,
    retry_policy: RetryPolicy | None = None,
) -> T:
    """
    Run one DynamoDB operation. Only retryable failures (throttling, transient
    transaction conflicts, client/network errors) are retried; a failed
    condition surfaces immediately as DdbConflict.
    """
    policy = retry_policy or RetryPolicy()
    attempts = max(1, int(policy.max_attempts))
    attempt = 1
    while True:
        try:
            return fn()
        except (ClientError, BotoCoreError) as e:
            mapped = map_error(e, operation=operation, table_name=table_name, key=key)
            if not mapped.retryable or attempt >= attempts:
                raise mapped from e
        time.sleep(policy.backoff(attempt))
        attempt += 1
