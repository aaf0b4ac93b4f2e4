"""Webhook event models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MondayEventType(str, Enum):
    INCOMING_NOTIFICATION = "IncomingNotification"
    CHANGE_COLUMN_VALUE = "ChangeColumnValue"
    CHANGE_SPECIFIC_COLUMN_VALUE = "ChangeSpecificColumnValue"
    CREATE_ITEM = "CreateItem"
    CREATE_UPDATE = "CreateUpdate"
    UNKNOWN = "Unknown"

    @classmethod
    def from_monday(cls, raw: str | None) -> MondayEventType:
        """Translate Monday's snake_case event name. Never raises."""
        if raw is None:
            return cls.UNKNOWN
        return _FROM_MONDAY.get(raw, cls.UNKNOWN)

    @classmethod
    def parse(cls, value: MondayEventType | str) -> MondayEventType | None:
        """Resolve an internal event name; None for anything unrecognized."""
        if isinstance(value, cls):
            return None if value is cls.UNKNOWN else value
        for member in cls:
            if member is not cls.UNKNOWN and member.value == value:
                return member
        return None

    def to_monday(self) -> str:
        if self is MondayEventType.UNKNOWN:
            raise ValueError("Unknown event type has no Monday name")
        return _TO_MONDAY[self]


_TO_MONDAY: dict[MondayEventType, str] = {
    MondayEventType.INCOMING_NOTIFICATION: "incoming_notification",
    MondayEventType.CHANGE_COLUMN_VALUE: "change_column_value",
    MondayEventType.CHANGE_SPECIFIC_COLUMN_VALUE: "change_specific_column_value",
    MondayEventType.CREATE_ITEM: "create_item",
    MondayEventType.CREATE_UPDATE: "create_update",
}

_FROM_MONDAY: dict[str, MondayEventType] = {v: k for k, v in _TO_MONDAY.items()}


@dataclass
class EventSubscription:
    id: str
    board_id: str
    type: MondayEventType
    column_id: str | None = None
    webhook_id: int | None = None
    delete_webhook_on_exit: bool = True

    def matches(self, event: MondayEvent) -> bool:
        return (
            event.type is not MondayEventType.UNKNOWN
            and self.board_id == event.board_id
            and self.type is event.type
        )


@dataclass
class MondayEvent:
    type: MondayEventType
    raw_type: str | None = None
    user_id: str | None = None
    board_id: str | None = None
    group_id: str | None = None
    item_id: str | None = None
    item_name: str | None = None
    column_id: str | None = None
    column_type: str | None = None
    column_title: str | None = None
    value: Any = None
    previous_value: Any = None
    changed_at: float | None = None
    trigger_time: str | None = None
    trigger_uuid: str | None = None
    subscription_id: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    # Legacy names kept for handlers written against Monday's "pulse" wording
    @property
    def pulse_id(self) -> str | None:
        return self.item_id

    @property
    def pulse_name(self) -> str | None:
        return self.item_name

    def as_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "boardId": self.board_id,
            "groupId": self.group_id,
            "itemId": self.item_id,
            "pulseId": self.item_id,
            "itemName": self.item_name,
            "pulseName": self.item_name,
            "columnId": self.column_id,
            "columnType": self.column_type,
            "columnTitle": self.column_title,
            "value": self.value,
            "previousValue": self.previous_value,
            "changedAt": self.changed_at,
            "triggerTime": self.trigger_time,
            "triggerUuid": self.trigger_uuid,
            "subscriptionId": self.subscription_id,
            "type": self.type.value,
            "originalType": self.raw_type,
        }
