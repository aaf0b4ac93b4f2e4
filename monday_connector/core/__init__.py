"""Core host modules for the Monday connector."""

from .bus import EventBus, Handler

__all__ = ["EventBus", "Handler"]
