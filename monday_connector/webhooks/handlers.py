"""Subscription validation and Monday event normalization."""

from __future__ import annotations

import re
from typing import Any

from monday_connector.errors import MondayValidationError
from monday_connector.webhooks.models import MondayEvent, MondayEventType


_ID_PATTERN = re.compile(r"\d{9,10}")


# ---------------------------------------------------------------------------
# Registration-time validation
# ---------------------------------------------------------------------------

def validate_board_id(board_id: int | str) -> str:
    value = str(board_id)
    if not _ID_PATTERN.fullmatch(value):
        raise MondayValidationError(f"Invalid board id: {board_id!r}")
    return value


def validate_event_type(event_type: MondayEventType | str) -> MondayEventType:
    resolved = MondayEventType.parse(event_type)
    if resolved is None:
        names = ", ".join(
            m.value for m in MondayEventType if m is not MondayEventType.UNKNOWN
        )
        raise MondayValidationError(
            f"Invalid event type: {event_type!r} (expected one of {names})"
        )
    return resolved


def validate_subscription(
    board_id: int | str,
    event_type: MondayEventType | str,
    column_id: int | str | None = None,
) -> tuple[str, MondayEventType, str | None]:
    """Check a subscription request and return its canonical form."""
    board = validate_board_id(board_id)
    resolved = validate_event_type(event_type)

    if resolved is not MondayEventType.CHANGE_SPECIFIC_COLUMN_VALUE:
        return board, resolved, None

    if column_id is None:
        raise MondayValidationError(f"Column id required for {resolved.value} events")
    column = str(column_id)
    if not _ID_PATTERN.fullmatch(column):
        raise MondayValidationError(f"Invalid column id: {column_id!r}")
    return board, resolved, column


# ---------------------------------------------------------------------------
# Event normalization
# ---------------------------------------------------------------------------

def _as_str(value: Any) -> str | None:
    return None if value is None else str(value)


def normalize_event(payload: dict[str, Any]) -> MondayEvent:
    """Normalize the ``event`` object of a Monday webhook delivery."""
    raw_type = payload.get("type")

    return MondayEvent(
        type=MondayEventType.from_monday(raw_type),
        raw_type=raw_type,
        user_id=_as_str(payload.get("userId")),
        board_id=_as_str(payload.get("boardId")),
        group_id=_as_str(payload.get("groupId")),
        item_id=_as_str(payload.get("pulseId")),
        item_name=payload.get("pulseName"),
        column_id=_as_str(payload.get("columnId")),
        column_type=payload.get("columnType"),
        column_title=payload.get("columnTitle"),
        value=payload.get("value"),
        previous_value=payload.get("previousValue"),
        changed_at=payload.get("changedAt"),
        trigger_time=payload.get("triggerTime"),
        trigger_uuid=payload.get("triggerUuid"),
        subscription_id=_as_str(payload.get("subscriptionId")),
        payload=payload,
    )
