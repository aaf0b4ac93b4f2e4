"""Connector entry point: serve webhooks or run one-off API calls."""

from __future__ import annotations

import asyncio
import signal
import sys

import click

from monday_connector.api.client import MondayClient
from monday_connector.api.sdk import MondaySdk
from monday_connector.config import Settings, load_settings
from monday_connector.connector import MondayConnector
from monday_connector.core.bus import EventBus
from monday_connector.utils.logging import get_logger, setup_logging
from monday_connector.webhooks.models import MondayEvent
from monday_connector.webhooks.server import WebhookServer

log = get_logger(__name__)


async def _log_event(event: MondayEvent) -> None:
    log.info("monday_event", **event.as_dict())


async def run(
    settings: Settings,
    subscriptions: list[tuple[str, str, str | None]],
    create_webhooks: bool = False,
) -> None:
    bus = EventBus()
    server = WebhookServer(settings.webhooks)
    connector = MondayConnector(MondaySdk(settings.api), bus, server, settings.webhooks)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    # Listening before any webhook is created so Monday's challenge is answered
    await server.start()

    try:
        for board_id, event_type, column_id in subscriptions:
            await connector.subscribe(
                board_id,
                event_type,
                _log_event,
                column_id=column_id,
                create_webhook=create_webhooks,
            )
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        for subscription in connector.subscriptions:
            await connector.off(subscription)
        await server.stop()
        await connector.close()


async def _find_board(settings: Settings, name: str) -> int | None:
    async with MondaySdk(settings.api) as sdk:
        return await MondayClient(sdk).get_board_id_by_name(name)


async def _create_webhook(
    settings: Settings, board_id: str, event_type: str, column_id: str | None
) -> int:
    async with MondaySdk(settings.api) as sdk:
        connector = MondayConnector(sdk, EventBus(), WebhookServer(settings.webhooks), settings.webhooks)
        return await connector.create_event_webhook(board_id, event_type, column_id)


async def _delete_webhook(settings: Settings, webhook_id: int) -> None:
    async with MondaySdk(settings.api) as sdk:
        await MondayClient(sdk).delete_webhook(webhook_id)


@click.group()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    """Monday.com connector."""
    settings = load_settings(config_path)
    if log_level:
        settings.log_level = log_level
    setup_logging(
        level=settings.log_level,
        json_output=settings.log_json,
        secrets=[settings.api.token],
    )
    ctx.obj = settings


@cli.command()
@click.option("--board", "boards", multiple=True, required=True, help="Board id to subscribe to")
@click.option("--type", "event_type", default="ChangeColumnValue", show_default=True)
@click.option("--column", "column_id", default=None, help="Column id (ChangeSpecificColumnValue)")
@click.option("--create-webhook", "create_webhooks", is_flag=True, help="Create Monday webhooks for the boards")
@click.pass_obj
def serve(
    settings: Settings,
    boards: tuple[str, ...],
    event_type: str,
    column_id: str | None,
    create_webhooks: bool,
) -> None:
    """Receive Monday webhooks and log the normalized events."""
    asyncio.run(run(settings, [(b, event_type, column_id) for b in boards], create_webhooks))


@cli.command()
@click.option("--name", required=True, help="Exact board name")
@click.pass_obj
def boards(settings: Settings, name: str) -> None:
    """Print the id of the first board with the given name."""
    board_id = asyncio.run(_find_board(settings, name))
    if board_id is None:
        raise click.ClickException(f"No board named {name!r}")
    click.echo(board_id)


@cli.command("create-webhook")
@click.option("--board", "board_id", required=True)
@click.option("--type", "event_type", required=True)
@click.option("--column", "column_id", default=None)
@click.pass_obj
def create_webhook(settings: Settings, board_id: str, event_type: str, column_id: str | None) -> None:
    """Create a webhook pointing at the configured base URL.

    Monday sends the URL a challenge straight away, so a ``serve``
    process must already be answering there.
    """
    click.echo(asyncio.run(_create_webhook(settings, board_id, event_type, column_id)))


@cli.command("delete-webhook")
@click.argument("webhook_id", type=int)
@click.pass_obj
def delete_webhook(settings: Settings, webhook_id: int) -> None:
    """Delete a webhook by id."""
    asyncio.run(_delete_webhook(settings, webhook_id))
    click.echo(f"Deleted webhook {webhook_id}")


if __name__ == "__main__":
    cli()
