from __future__ import annotations

from functools import lru_cache

import boto3
from botocore.config import Config


@lru_cache(maxsize=1)
def botocore_config() -> Config:
    # Keep botocore retries enabled (adaptive is best-effort); we still do an app-layer
    # retry for a narrow set of known-safe transient failures.
    return Config(
        retries={"max_attempts": 10, "mode": "adaptive"},
        connect_timeout=2,
        read_timeout=10,
    )


@lru_cache(maxsize=4)
def dynamodb_resource(region_name: str, endpoint_url: str | None = None):
    return boto3.resource(
        "dynamodb",
        region_name=region_name,
        endpoint_url=endpoint_url or None,
        config=botocore_config(),
    )


@lru_cache(maxsize=4)
def dynamodb_client(region_name: str, endpoint_url: str | None = None):
    return boto3.client(
        "dynamodb",
        region_name=region_name,
        endpoint_url=endpoint_url or None,
        config=botocore_config(),
    )


def clear_client_cache() -> None:
    dynamodb_resource.cache_clear()
    dynamodb_client.cache_clear()
