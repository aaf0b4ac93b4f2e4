"""Webhook HTTP server using aiohttp."""

from __future__ import annotations

from typing import Protocol

from aiohttp import web

from monday_connector.config import WebhooksConfig
from monday_connector.utils.logging import get_logger

log = get_logger(__name__)


class HttpDelegate(Protocol):
    async def handle(self, request: web.Request) -> web.StreamResponse: ...


def _normalize_path(path: str) -> str:
    return path if path.startswith("/") else f"/{path}"


class WebhookServer:
    """Receives incoming webhooks and hands them to the delegate owning the path.

    Delegates can be installed and removed while the server runs, so a
    single catch-all route does the lookup per request.
    """

    def __init__(self, config: WebhooksConfig) -> None:
        self._config = config
        self._delegates: dict[str, HttpDelegate] = {}
        self._runner: web.AppRunner | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        app = self.build_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.bind, self._config.port)
        await site.start()
        log.info(
            "webhook_server_started",
            bind=self._config.bind,
            port=self._config.port,
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        log.info("webhook_server_stopped")

    # ------------------------------------------------------------------
    # Delegates
    # ------------------------------------------------------------------

    def register_http_delegate(self, path: str, delegate: HttpDelegate) -> None:
        path = _normalize_path(path)
        self._delegates[path] = delegate
        log.info("http_delegate_registered", path=path)

    def unregister_http_delegate(self, path: str) -> None:
        path = _normalize_path(path)
        if self._delegates.pop(path, None) is not None:
            log.info("http_delegate_removed", path=path)

    def has_delegate(self, path: str) -> bool:
        return _normalize_path(path) in self._delegates

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/{tail:.*}", self._handle_webhook)
        return app

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_webhook(self, request: web.Request) -> web.StreamResponse:
        delegate = self._delegates.get(request.path)
        if delegate is None:
            log.warning("no_http_delegate", method=request.method, path=request.path)
            return web.Response(status=404, text="Not found")
        return await delegate.handle(request)
