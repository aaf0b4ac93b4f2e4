"""Monday connector: API access plus webhook event dispatch."""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from aiohttp import web

from monday_connector.api.client import MondayClient
from monday_connector.api.sdk import MondaySdk
from monday_connector.config import WebhooksConfig
from monday_connector.core.bus import EventBus, Handler
from monday_connector.errors import MondayValidationError
from monday_connector.utils.logging import get_logger
from monday_connector.webhooks.handlers import normalize_event, validate_subscription
from monday_connector.webhooks.models import EventSubscription, MondayEvent, MondayEventType
from monday_connector.webhooks.server import WebhookServer

log = get_logger(__name__)


class MondayConnector(MondayClient):
    """Bridges Monday webhooks and API calls to the host bus and HTTP server.

    The connector owns its subscriptions (in registration order) and the
    ``changedAt`` watermark used to drop redeliveries. Both are only touched
    from the event loop running the HTTP server.
    """

    def __init__(
        self,
        sdk: MondaySdk,
        bus: EventBus,
        server: WebhookServer,
        config: WebhooksConfig | None = None,
        connector_id: str | None = None,
    ) -> None:
        super().__init__(sdk)
        self.id = connector_id or uuid4().hex[:12]
        self._bus = bus
        self._server = server
        self._config = config or WebhooksConfig()
        self._subscriptions: dict[str, EventSubscription] = {}
        self._last_changed_at: Any = None

    @property
    def webhook_path(self) -> str:
        return self._config.path

    @property
    def subscriptions(self) -> list[EventSubscription]:
        return list(self._subscriptions.values())

    @property
    def delegate_installed(self) -> bool:
        return self._server.has_delegate(self.webhook_path)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def on(
        self,
        board_id: int | str,
        event_type: MondayEventType | str,
        handler: Handler,
        column_id: int | str | None = None,
        webhook_id: int | None = None,
        delete_webhook_on_exit: bool | None = None,
    ) -> EventSubscription:
        """Register ``handler`` for ``event_type`` events on ``board_id``.

        Raises:
            MondayValidationError: invalid board id, event type or column id.
        """
        board, resolved, column = validate_subscription(board_id, event_type, column_id)

        key = f"Monday/{board}/{resolved.value}/{self.id}"
        subscription = self._subscriptions.get(key)
        if subscription is None:
            subscription = EventSubscription(
                id=key,
                board_id=board,
                type=resolved,
                column_id=column,
                webhook_id=webhook_id,
                delete_webhook_on_exit=(
                    True if delete_webhook_on_exit is None else delete_webhook_on_exit
                ),
            )
            if not self._subscriptions:
                self._server.register_http_delegate(self.webhook_path, self)
            self._subscriptions[key] = subscription
            log.info(
                "monday_subscription_added",
                subscription_id=key,
                board_id=board,
                event_type=resolved.value,
            )
        else:
            self._merge_options(subscription, column, webhook_id, delete_webhook_on_exit)

        self._bus.when(key, handler)
        return subscription

    async def subscribe(
        self,
        board_id: int | str,
        event_type: MondayEventType | str,
        handler: Handler,
        column_id: int | str | None = None,
        create_webhook: bool = False,
        delete_webhook_on_exit: bool | None = None,
    ) -> EventSubscription:
        """Register ``handler`` and optionally create the Monday webhook for it.

        The HTTP delegate is installed before the webhook mutation is sent,
        so Monday's challenge request reaches this connector. The created
        webhook id is stored on the subscription and deleted by :meth:`off`.
        A failed creation removes a subscription this call added.
        """
        known = set(self._subscriptions)
        subscription = self.on(
            board_id,
            event_type,
            handler,
            column_id=column_id,
            delete_webhook_on_exit=delete_webhook_on_exit,
        )
        if not create_webhook or subscription.webhook_id is not None:
            return subscription

        try:
            subscription.webhook_id = await self.create_event_webhook(
                subscription.board_id, subscription.type, subscription.column_id
            )
        except Exception:
            if subscription.id not in known:
                await self.off(subscription)
            raise
        return subscription

    def _merge_options(
        self,
        subscription: EventSubscription,
        column_id: str | None,
        webhook_id: int | None,
        delete_webhook_on_exit: bool | None,
    ) -> None:
        if webhook_id is not None:
            if subscription.webhook_id is None:
                subscription.webhook_id = webhook_id
            elif subscription.webhook_id != webhook_id:
                log.warning(
                    "monday_subscription_webhook_ignored",
                    subscription_id=subscription.id,
                    webhook_id=webhook_id,
                    current=subscription.webhook_id,
                )
        if delete_webhook_on_exit is not None:
            subscription.delete_webhook_on_exit = delete_webhook_on_exit
        if column_id is not None and column_id != subscription.column_id:
            log.warning(
                "monday_subscription_column_ignored",
                subscription_id=subscription.id,
                column_id=column_id,
                current=subscription.column_id,
            )

    async def off(self, subscription: EventSubscription | str) -> bool:
        """Remove a subscription and its handlers.

        The Monday webhook is only deleted when the subscription carries a
        ``webhook_id`` and ``delete_webhook_on_exit`` is set; a failed
        deletion is logged and otherwise ignored.
        """
        key = subscription if isinstance(subscription, str) else subscription.id
        removed = self._subscriptions.pop(key, None)
        if removed is None:
            return False

        self._bus.remove(key)
        if not self._subscriptions:
            self._server.unregister_http_delegate(self.webhook_path)
        log.info("monday_subscription_removed", subscription_id=key)

        if removed.webhook_id is not None and removed.delete_webhook_on_exit:
            try:
                await self.delete_webhook(removed.webhook_id)
            except Exception:
                log.exception("monday_webhook_delete_failed", webhook_id=removed.webhook_id)
        return True

    # ------------------------------------------------------------------
    # Webhook lifecycle
    # ------------------------------------------------------------------

    async def create_event_webhook(
        self,
        board_id: int | str,
        event_type: MondayEventType | str,
        column_id: int | str | None = None,
    ) -> int:
        """Create a Monday webhook pointing at this connector's path."""
        if not self._config.base_url:
            raise MondayValidationError("A base URL is required to create event webhooks")
        board, resolved, column = validate_subscription(board_id, event_type, column_id)

        config = {"columnId": column} if column is not None else None
        url = self._config.base_url.rstrip("/") + self.webhook_path
        return await self.create_webhook(board, url, resolved.to_monday(), config)

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def handle(self, request: web.Request) -> web.StreamResponse:
        try:
            body = await request.json()
        except ValueError:
            return web.Response(status=400, text="Invalid JSON")
        if not isinstance(body, dict):
            return web.Response(status=400, text="Invalid payload")

        if body.get("challenge"):
            log.info("monday_challenge")
            return web.json_response({"challenge": body["challenge"]})

        payload = body.get("event")
        if not isinstance(payload, dict):
            return web.Response(status=400, text="Missing event")

        changed_at = payload.get("changedAt")
        if changed_at is not None:
            if changed_at == self._last_changed_at:
                log.info("monday_event_duplicate", changed_at=changed_at)
                return web.json_response({"success": True, "duplicate": True})
            self._last_changed_at = changed_at

        event = normalize_event(payload)
        log.info(
            "monday_event_received",
            event_type=event.type.value,
            board_id=event.board_id,
            item_id=event.item_id,
        )
        handled = await self.dispatch(event)
        return web.json_response({"success": True, "handled": handled})

    async def dispatch(self, event: MondayEvent) -> bool:
        """Fan ``event`` out to matching subscriptions in registration order."""
        handled = False
        for subscription in list(self._subscriptions.values()):
            if subscription.matches(event):
                handled = await self._bus.handle_event(subscription.id, event) or handled
        return handled
