from __future__ import annotations

from typing import Any

from ...repositories.requirements_repo import (
    APPROVAL_APPROVED,
    APPROVAL_PENDING,
    APPROVAL_REJECTED,
    APPROVAL_SENT_BACK,
    STATUS_IN_PROGRESS,
    STATUS_OPEN,
)

# Moderation actions: action -> (required source, target, records remarks).
MODERATION_ACTIONS: dict[str, tuple[str, str, bool]] = {
    "approve": (APPROVAL_PENDING, APPROVAL_APPROVED, False),
    "send-back": (APPROVAL_PENDING, APPROVAL_SENT_BACK, True),
    "reject": (APPROVAL_PENDING, APPROVAL_REJECTED, True),
}


def moderation_transition(action: str) -> tuple[str, str, bool]:
    try:
        return MODERATION_ACTIONS[action]
    except KeyError:
        raise ValueError(f"unknown moderation action: {action}") from None


def can_moderate(approval_status: str | None) -> bool:
    return approval_status == APPROVAL_PENDING


def normalize_remarks(remarks: Any) -> str | None:
    """Trimmed remarks; blank or missing becomes None."""
    if remarks is None:
        return None
    s = str(remarks).strip()
    return s or None


def is_publicly_visible(requirement: dict[str, Any]) -> bool:
    # Only the business axis decides public visibility.
    return requirement.get("status") == STATUS_OPEN


def is_active_deal(requirement: dict[str, Any], accepted_count: int) -> bool:
    return requirement.get("status") == STATUS_IN_PROGRESS or accepted_count > 0
