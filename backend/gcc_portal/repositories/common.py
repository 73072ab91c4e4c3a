from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

# Internal single-table attributes that never leave the repository layer.
INTERNAL_KEYS = ("pk", "sk", "gsi1pk", "gsi1sk", "entityType")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4()}"


def type_pk(t: str) -> str:
    return f"TYPE#{t}"


def listing_sk(created_at: str, entity_id: str) -> str:
    return f"{created_at}#{entity_id}"


def to_plain(value: Any) -> Any:
    """
    Convert boto3's Decimal/set values into JSON-friendly Python values.
    """
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(to_plain(v) for v in value)
    return value


def to_ddb(value: Any) -> Any:
    """
    Inverse direction: DynamoDB rejects floats, store numbers as Decimal.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_ddb(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_ddb(v) for v in value]
    return value


def strip_internal(item: dict[str, Any]) -> dict[str, Any]:
    out = {k: v for k, v in item.items() if k not in INTERNAL_KEYS}
    return to_plain(out)


def set_clause(fields: dict[str, Any], *, prefix: str = "f") -> tuple[list[str], dict[str, str], dict[str, Any]]:
    """
    Build `#f0 = :f0` style SET fragments for an update expression.
    Placeholders keep reserved words (status, name, size, ...) safe.
    """
    parts: list[str] = []
    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    for i, (attr, val) in enumerate(fields.items()):
        n = f"#{prefix}{i}"
        v = f":{prefix}{i}"
        names[n] = attr
        values[v] = to_ddb(val)
        parts.append(f"{n} = {v}")
    return parts, names, values
