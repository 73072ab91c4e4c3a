from __future__ import annotations

import pytest
from botocore.exceptions import ClientError

from gcc_portal.db.dynamodb.errors import DdbConflict, DdbThrottled, DdbValidation
from gcc_portal.db.dynamodb.retry import RetryPolicy, cancellation_codes, ddb_call


def _client_error(code: str, message: str = "boom", reasons: list[dict] | None = None) -> ClientError:
    response: dict = {
        "Error": {"Code": code, "Message": message},
        "ResponseMetadata": {"RequestId": "req-1"},
    }
    if reasons is not None:
        response["CancellationReasons"] = reasons
    return ClientError(response, "TransactWriteItems")


def test_cancellation_codes_prefer_structured_reasons():
    e = _client_error(
        "TransactionCanceledException",
        reasons=[{"Code": "None"}, {"Code": "ConditionalCheckFailed"}, {}],
    )
    assert cancellation_codes(e) == ["None", "ConditionalCheckFailed", "None"]


def test_cancellation_codes_fall_back_to_message():
    e = _client_error(
        "TransactionCanceledException",
        "Transaction cancelled, please refer cancellation reasons for specific reasons "
        "[ConditionalCheckFailed, None]",
    )
    assert cancellation_codes(e) == ["ConditionalCheckFailed", "None"]
    assert cancellation_codes(_client_error("ValidationException")) == []


def test_failed_transaction_condition_maps_to_conflict_with_codes():
    err = _client_error(
        "TransactionCanceledException",
        reasons=[{"Code": "None"}, {"Code": "ConditionalCheckFailed"}],
    )

    def op():
        raise err

    with pytest.raises(DdbConflict) as ei:
        ddb_call("TransactWriteItems", op, table_name="t")
    assert ei.value.cancellation_codes == ["None", "ConditionalCheckFailed"]
    assert ei.value.aws_request_id == "req-1"
    assert ei.value.retryable is False


def test_conditional_check_and_validation_are_not_retried():
    calls = []

    def op(code):
        def _op():
            calls.append(code)
            raise _client_error(code)

        return _op

    with pytest.raises(DdbConflict):
        ddb_call("PutItem", op("ConditionalCheckFailedException"))
    with pytest.raises(DdbValidation):
        ddb_call("PutItem", op("ValidationException"))
    assert calls == ["ConditionalCheckFailedException", "ValidationException"]


def test_throttling_is_retried_then_surfaces():
    attempts = []
    policy = RetryPolicy(max_attempts=3, base_delay_s=0.0, max_delay_s=0.0)

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise _client_error("ProvisionedThroughputExceededException")
        return "ok"

    assert ddb_call("GetItem", flaky, retry_policy=policy) == "ok"
    assert len(attempts) == 3

    def always():
        raise _client_error("ThrottlingException")

    with pytest.raises(DdbThrottled) as ei:
        ddb_call("GetItem", always, retry_policy=policy)
    assert ei.value.retryable is True
