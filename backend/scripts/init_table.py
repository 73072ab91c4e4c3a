#!/usr/bin/env python3
"""
Create the portal's DynamoDB table (idempotent).

Reads AWS_REGION, DDB_TABLE_NAME and DDB_ENDPOINT_URL from the environment;
point DDB_ENDPOINT_URL at DynamoDB Local for development.

Usage:
    python backend/scripts/init_table.py [--table NAME]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from gcc_portal.db.dynamodb.schema import create_main_table  # noqa: E402
from gcc_portal.observability.logging import configure_logging, get_logger  # noqa: E402
from gcc_portal.settings import get_settings  # noqa: E402

log = get_logger("init_table")


def main() -> int:
    parser = argparse.ArgumentParser(description="Create the portal DynamoDB table")
    parser.add_argument("--table", type=str, help="Table name (defaults to DDB_TABLE_NAME)")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(level=settings.log_level)
    table_name = args.table or settings.effective_table_name

    created = create_main_table(
        table_name=table_name,
        region_name=settings.aws_region,
        endpoint_url=settings.ddb_endpoint_url,
    )
    log.info("table_ready", table=table_name, created=created)
    print(f"{table_name}: {'created' if created else 'already exists'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
