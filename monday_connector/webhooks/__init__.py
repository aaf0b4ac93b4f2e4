"""Webhook server, event models and normalization."""

from .handlers import normalize_event, validate_subscription
from .models import EventSubscription, MondayEvent, MondayEventType
from .server import WebhookServer

__all__ = [
    "EventSubscription",
    "MondayEvent",
    "MondayEventType",
    "WebhookServer",
    "normalize_event",
    "validate_subscription",
]
