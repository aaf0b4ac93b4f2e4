"""Host-side event registry: subscription ids bound to ordered handler lists."""

from __future__ import annotations

from typing import Any, Callable, Coroutine

from monday_connector.utils.logging import get_logger

log = get_logger(__name__)


Handler = Callable[[Any], Coroutine[Any, Any, None]]


class EventBus:
    """Maps opaque event ids to handlers and awaits them in order.

    Dispatch is sequential and unisolated: a failing handler stops the
    remaining handlers for that event and the exception reaches the caller.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}

    def when(self, event_id: str, handler: Handler) -> None:
        self._handlers.setdefault(event_id, []).append(handler)
        log.debug(
            "handler_bound",
            event_id=event_id,
            handler=getattr(handler, "__qualname__", type(handler).__qualname__),
        )

    def remove(self, event_id: str) -> bool:
        removed = self._handlers.pop(event_id, None)
        return removed is not None

    def handlers(self, event_id: str) -> list[Handler]:
        return list(self._handlers.get(event_id, []))

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._handlers

    async def handle_event(self, event_id: str, payload: Any) -> bool:
        """Invoke every handler bound to ``event_id``.

        Returns True when at least one handler ran.
        """
        handlers = self.handlers(event_id)
        if not handlers:
            log.warning("no_handlers", event_id=event_id)
            return False
        for handler in handlers:
            await handler(payload)
        return True
