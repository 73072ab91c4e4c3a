from __future__ import annotations

from typing import Any, Iterable

from boto3.dynamodb.types import TypeSerializer

from .client import dynamodb_client, dynamodb_resource
from .retry import RetryPolicy, ddb_call


_serializer = TypeSerializer()

# TransactWriteItems accepts at most 100 actions per call.
MAX_TRANSACT_ITEMS = 100


def _serialize_item(item: dict[str, Any]) -> dict[str, Any]:
    # DynamoDB client expects AttributeValue shape; TypeSerializer produces {'S': '...'} etc.
    return {k: _serializer.serialize(v) for k, v in item.items()}


def _with_expression(
    out: dict[str, Any],
    *,
    condition_expression: str | None,
    expression_attribute_names: dict[str, str] | None,
    expression_attribute_values: dict[str, Any] | None,
    serialize: bool,
) -> dict[str, Any]:
    if condition_expression:
        out["ConditionExpression"] = condition_expression
    if expression_attribute_names:
        out["ExpressionAttributeNames"] = expression_attribute_names
    if expression_attribute_values:
        out["ExpressionAttributeValues"] = (
            _serialize_item(expression_attribute_values) if serialize else expression_attribute_values
        )
    return out


class DynamoTable:
    def __init__(self, *, table_name: str, region_name: str, endpoint_url: str | None = None):
        self.table_name = str(table_name)
        self._table = dynamodb_resource(region_name, endpoint_url).Table(self.table_name)
        self._client = dynamodb_client(region_name, endpoint_url)

    # --- basic operations ---

    def get_item(self, *, key: dict[str, Any], consistent_read: bool = True) -> dict[str, Any] | None:
        def _op():
            resp = self._table.get_item(Key=key, ConsistentRead=consistent_read)
            return resp.get("Item")

        return ddb_call("GetItem", _op, table_name=self.table_name, key=key)

    def put_item(
        self,
        *,
        item: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        def _op():
            kwargs = _with_expression(
                {"Item": item},
                condition_expression=condition_expression,
                expression_attribute_names=expression_attribute_names,
                expression_attribute_values=expression_attribute_values,
                serialize=False,
            )
            return self._table.put_item(**kwargs)

        return ddb_call("PutItem", _op, table_name=self.table_name)

    def delete_item(
        self,
        *,
        key: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
        return_values: str = "NONE",
    ) -> dict[str, Any] | None:
        def _op():
            kwargs = _with_expression(
                {"Key": key, "ReturnValues": return_values},
                condition_expression=condition_expression,
                expression_attribute_names=expression_attribute_names,
                expression_attribute_values=expression_attribute_values,
                serialize=False,
            )
            resp = self._table.delete_item(**kwargs)
            return resp.get("Attributes")

        return ddb_call("DeleteItem", _op, table_name=self.table_name, key=key)

    def update_item(
        self,
        *,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_names: dict[str, str] | None,
        expression_attribute_values: dict[str, Any] | None,
        condition_expression: str | None = None,
        return_values: str = "ALL_NEW",
    ) -> dict[str, Any] | None:
        """
        Single-item update. With a condition_expression this is the atomic
        "update WHERE <precondition>" primitive: either the precondition holds
        and the new image is returned, or DdbConflict is raised and nothing
        was written.
        """
        def _op():
            kwargs = _with_expression(
                {
                    "Key": key,
                    "UpdateExpression": update_expression,
                    "ReturnValues": return_values,
                },
                condition_expression=condition_expression,
                expression_attribute_names=expression_attribute_names,
                expression_attribute_values=expression_attribute_values,
                serialize=False,
            )
            resp = self._table.update_item(**kwargs)
            return resp.get("Attributes")

        return ddb_call("UpdateItem", _op, table_name=self.table_name, key=key)

    # --- query ---

    def query_all(
        self,
        *,
        key_condition_expression: Any,
        index_name: str | None = None,
        scan_index_forward: bool = False,
        filter_expression: Any | None = None,
        max_items: int | None = None,
        consistent_read: bool = False,
    ) -> list[dict[str, Any]]:
        """
        Follow LastEvaluatedKey until the partition is exhausted (or
        max_items matching items were collected). consistent_read is only
        valid on the base table.
        """
        out: list[dict[str, Any]] = []
        lek: dict[str, Any] | None = None

        while True:
            def _op():
                kwargs: dict[str, Any] = {
                    "KeyConditionExpression": key_condition_expression,
                    "ScanIndexForward": bool(scan_index_forward),
                }
                if index_name:
                    kwargs["IndexName"] = index_name
                if filter_expression is not None:
                    kwargs["FilterExpression"] = filter_expression
                if consistent_read:
                    kwargs["ConsistentRead"] = True
                # Important: only pass ExclusiveStartKey when present.
                if lek:
                    kwargs["ExclusiveStartKey"] = lek
                return self._table.query(**kwargs)

            resp = ddb_call("Query", _op, table_name=self.table_name)
            out.extend(resp.get("Items") or [])
            if max_items is not None and len(out) >= max_items:
                return out[:max_items]
            lek = resp.get("LastEvaluatedKey")
            if not lek:
                return out

    def count(
        self,
        *,
        key_condition_expression: Any,
        filter_expression: Any | None = None,
        consistent_read: bool = False,
    ) -> int:
        """Number of matching items, without fetching them (Select=COUNT)."""
        total = 0
        lek: dict[str, Any] | None = None
        while True:
            kwargs: dict[str, Any] = {
                "KeyConditionExpression": key_condition_expression,
                "Select": "COUNT",
                "ConsistentRead": bool(consistent_read),
            }
            if filter_expression is not None:
                kwargs["FilterExpression"] = filter_expression
            if lek:
                kwargs["ExclusiveStartKey"] = lek
            resp = ddb_call("Query", lambda: self._table.query(**kwargs), table_name=self.table_name)
            total += int(resp.get("Count") or 0)
            lek = resp.get("LastEvaluatedKey")
            if not lek:
                return total

    # --- batch ---

    def batch_delete(self, *, keys: Iterable[dict[str, Any]]) -> int:
        unique: dict[tuple[str, str], dict[str, Any]] = {}
        for k in keys:
            unique[(str(k["pk"]), str(k["sk"]))] = k
        if not unique:
            return 0

        def _op():
            with self._table.batch_writer() as bw:
                for k in unique.values():
                    bw.delete_item(Key=k)
            return len(unique)

        return ddb_call("BatchWriteItem", _op, table_name=self.table_name)

    # --- transactions ---

    def transact_write(
        self,
        *,
        puts: Iterable[dict[str, Any]] = (),
        deletes: Iterable[dict[str, Any]] = (),
        updates: Iterable[dict[str, Any]] = (),
        condition_checks: Iterable[dict[str, Any]] = (),
        retry_policy: RetryPolicy | None = None,
    ) -> dict[str, Any]:
        """
        All-or-nothing write. Items are sent in the order condition checks,
        puts, updates, deletes; DdbConflict.cancellation_codes follows the
        same order.
        """
        # Each entry should already be in DynamoDB client shape (see tx_* builders).
        items: list[dict[str, Any]] = []
        for c in condition_checks:
            items.append({"ConditionCheck": c})
        for p in puts:
            items.append({"Put": p})
        for u in updates:
            items.append({"Update": u})
        for d in deletes:
            items.append({"Delete": d})

        if not items:
            return {"ok": True}
        if len(items) > MAX_TRANSACT_ITEMS:
            raise ValueError(f"transaction exceeds {MAX_TRANSACT_ITEMS} items")

        def _op():
            return self._client.transact_write_items(TransactItems=items)

        # transaction conflicts are mapped retryable by retry layer.
        return ddb_call(
            "TransactWriteItems",
            _op,
            table_name=self.table_name,
            retry_policy=retry_policy or RetryPolicy(max_attempts=8, base_delay_s=0.08, max_delay_s=2.0),
        )

    # Convenience builders for transact items (client shape)

    def tx_put(
        self,
        *,
        item: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return _with_expression(
            {"TableName": self.table_name, "Item": _serialize_item(item)},
            condition_expression=condition_expression,
            expression_attribute_names=expression_attribute_names,
            expression_attribute_values=expression_attribute_values,
            serialize=True,
        )

    def tx_delete(
        self,
        *,
        key: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return _with_expression(
            {"TableName": self.table_name, "Key": _serialize_item(key)},
            condition_expression=condition_expression,
            expression_attribute_names=expression_attribute_names,
            expression_attribute_values=expression_attribute_values,
            serialize=True,
        )

    def tx_update(
        self,
        *,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_names: dict[str, str] | None,
        expression_attribute_values: dict[str, Any] | None,
        condition_expression: str | None = None,
    ) -> dict[str, Any]:
        return _with_expression(
            {
                "TableName": self.table_name,
                "Key": _serialize_item(key),
                "UpdateExpression": update_expression,
            },
            condition_expression=condition_expression,
            expression_attribute_names=expression_attribute_names,
            expression_attribute_values=expression_attribute_values,
            serialize=True,
        )

    def tx_condition_check(
        self,
        *,
        key: dict[str, Any],
        condition_expression: str,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return _with_expression(
            {"TableName": self.table_name, "Key": _serialize_item(key)},
            condition_expression=condition_expression,
            expression_attribute_names=expression_attribute_names,
            expression_attribute_values=expression_attribute_values,
            serialize=True,
        )
