from __future__ import annotations

from typing import Any

from botocore.exceptions import ClientError

from .client import dynamodb_client

GSI1 = "GSI1"


def main_table_definition(table_name: str) -> dict[str, Any]:
    """
    Single-table layout:
      pk/sk      entity keys (USER#<id>/ACCOUNT, REQUIREMENT#<id>/DETAILS, ...)
      GSI1       gsi1pk = TYPE#<entity>, gsi1sk = <createdAt>#<id> for listings
    """
    return {
        "TableName": table_name,
        "BillingMode": "PAY_PER_REQUEST",
        "AttributeDefinitions": [
            {"AttributeName": "pk", "AttributeType": "S"},
            {"AttributeName": "sk", "AttributeType": "S"},
            {"AttributeName": "gsi1pk", "AttributeType": "S"},
            {"AttributeName": "gsi1sk", "AttributeType": "S"},
        ],
        "KeySchema": [
            {"AttributeName": "pk", "KeyType": "HASH"},
            {"AttributeName": "sk", "KeyType": "RANGE"},
        ],
        "GlobalSecondaryIndexes": [
            {
                "IndexName": GSI1,
                "KeySchema": [
                    {"AttributeName": "gsi1pk", "KeyType": "HASH"},
                    {"AttributeName": "gsi1sk", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            }
        ],
    }


def create_main_table(*, table_name: str, region_name: str, endpoint_url: str | None = None) -> bool:
    """Create the table if missing. Returns True when it was created."""
    client = dynamodb_client(region_name, endpoint_url)
    try:
        client.create_table(**main_table_definition(table_name))
    except ClientError as e:
        if (e.response or {}).get("Error", {}).get("Code") == "ResourceInUseException":
            return False
        raise
    client.get_waiter("table_exists").wait(TableName=table_name)
    return True
