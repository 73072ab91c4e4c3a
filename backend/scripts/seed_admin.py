#!/usr/bin/env python3
"""
Seed the ADMIN account from ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME.

Safe to re-run: an existing account with the same email is left as is.

Usage:
    ADMIN_PASSWORD=... python backend/scripts/seed_admin.py
"""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from gcc_portal.auth.passwords import PasswordHasher  # noqa: E402
from gcc_portal.db.dynamodb.table import DynamoTable  # noqa: E402
from gcc_portal.modules.accounts.account_service import seed_admin  # noqa: E402
from gcc_portal.observability.logging import configure_logging, get_logger  # noqa: E402
from gcc_portal.settings import get_settings  # noqa: E402

log = get_logger("seed_admin")


def main() -> int:
    settings = get_settings()
    configure_logging(level=settings.log_level)
    if not settings.admin_password:
        log.error("seed_admin_missing_password")
        print("ADMIN_PASSWORD is required")
        return 1

    table = DynamoTable(
        table_name=settings.effective_table_name,
        region_name=settings.aws_region,
        endpoint_url=settings.ddb_endpoint_url,
    )
    user, created = seed_admin(
        table=table,
        hasher=PasswordHasher(),
        email=settings.admin_email,
        password=settings.admin_password,
        name=settings.admin_name,
    )
    print(f"{user.get('email')}: {'created' if created else 'already exists'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
