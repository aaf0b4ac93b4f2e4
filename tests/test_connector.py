"""Tests for the Monday connector: subscriptions and webhook dispatch."""

import json

import pytest
from aiohttp.test_utils import TestClient, TestServer

from monday_connector.api import queries
from monday_connector.config import WebhooksConfig
from monday_connector.connector import MondayConnector
from monday_connector.core.bus import EventBus
from monday_connector.errors import MondayApiError, MondayValidationError
from monday_connector.webhooks.models import MondayEventType
from monday_connector.webhooks.server import WebhookServer

BOARD = 123456789


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def webhook_config():
    return WebhooksConfig(base_url="https://hooks.example.com/", port=0)


@pytest.fixture
def server(webhook_config):
    return WebhookServer(webhook_config)


@pytest.fixture
def connector(sdk, bus, server, webhook_config):
    return MondayConnector(sdk, bus, server, webhook_config, connector_id="conn1")


@pytest.fixture
async def client(server):
    async with TestClient(TestServer(server.build_app())) as c:
        yield c


def _event(**overrides):
    event = {
        "boardId": BOARD,
        "type": "change_column_value",
        "changedAt": 100,
        "pulseId": 55,
        "pulseName": "Task",
    }
    event.update(overrides)
    return {"event": event}


class Recorder:
    def __init__(self):
        self.events = []

    async def __call__(self, event):
        self.events.append(event)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

class TestRegistration:
    def test_on_returns_subscription(self, connector, bus):
        sub = connector.on(BOARD, "ChangeColumnValue", Recorder())
        assert sub.id == "Monday/123456789/ChangeColumnValue/conn1"
        assert sub.board_id == "123456789"
        assert sub.type is MondayEventType.CHANGE_COLUMN_VALUE
        assert sub.id in bus
        assert connector.subscriptions == [sub]

    def test_first_subscription_installs_delegate(self, connector, server):
        assert not connector.delegate_installed
        connector.on(BOARD, "CreateItem", Recorder())
        assert connector.delegate_installed
        assert server.has_delegate("/monday-event")

    @pytest.mark.parametrize(
        "board_id, event_type, column_id",
        [
            (12345, "CreateItem", None),
            ("board", "CreateItem", None),
            (BOARD, "create_item", None),
            (BOARD, "Whatever", None),
            (BOARD, "ChangeSpecificColumnValue", None),
            (BOARD, "ChangeSpecificColumnValue", "status"),
        ],
    )
    def test_invalid_registration_adds_nothing(self, connector, bus, board_id, event_type, column_id):
        with pytest.raises(MondayValidationError):
            connector.on(board_id, event_type, Recorder(), column_id=column_id)
        assert connector.subscriptions == []
        assert not connector.delegate_installed

    def test_specific_column_subscription(self, connector):
        sub = connector.on(
            BOARD, MondayEventType.CHANGE_SPECIFIC_COLUMN_VALUE, Recorder(), column_id="987654321"
        )
        assert sub.column_id == "987654321"

    def test_same_key_reuses_subscription(self, connector, bus):
        first = connector.on(BOARD, "CreateItem", Recorder())
        second = connector.on(str(BOARD), "CreateItem", Recorder())
        assert first is second
        assert len(connector.subscriptions) == 1
        assert len(bus.handlers(first.id)) == 2

    def test_delete_on_exit_defaults_true(self, connector):
        sub = connector.on(BOARD, "CreateItem", Recorder())
        assert sub.delete_webhook_on_exit is True

    def test_delete_on_exit_false_is_kept(self, connector):
        sub = connector.on(BOARD, "CreateItem", Recorder(), delete_webhook_on_exit=False)
        assert sub.delete_webhook_on_exit is False


class TestRepeatedRegistration:
    def test_webhook_id_filled_in_when_unset(self, connector):
        sub = connector.on(BOARD, "CreateItem", Recorder())
        connector.on(BOARD, "CreateItem", Recorder(), webhook_id=4321)
        assert sub.webhook_id == 4321

    def test_existing_webhook_id_kept(self, connector):
        sub = connector.on(BOARD, "CreateItem", Recorder(), webhook_id=1)
        connector.on(BOARD, "CreateItem", Recorder(), webhook_id=2)
        assert sub.webhook_id == 1

    def test_explicit_delete_on_exit_applied(self, connector):
        sub = connector.on(BOARD, "CreateItem", Recorder())
        connector.on(BOARD, "CreateItem", Recorder(), delete_webhook_on_exit=False)
        assert sub.delete_webhook_on_exit is False
        connector.on(BOARD, "CreateItem", Recorder())
        assert sub.delete_webhook_on_exit is False

    def test_different_column_kept(self, connector):
        sub = connector.on(
            BOARD, "ChangeSpecificColumnValue", Recorder(), column_id="111111111"
        )
        connector.on(BOARD, "ChangeSpecificColumnValue", Recorder(), column_id="222222222")
        assert sub.column_id == "111111111"


class TestSubscribe:
    async def test_challenge_answered_while_webhook_is_created(self, connector, client, sdk):
        answers = []

        async def monday_sends_challenge(query, variables):
            resp = await client.post("/monday-event", json={"challenge": "abc"})
            answers.append((resp.status, await resp.json()))

        sdk.on_call = monday_sends_challenge
        sdk.queue({"data": {"create_webhook": {"id": "99", "board_id": BOARD}}})

        sub = await connector.subscribe(BOARD, "CreateItem", Recorder(), create_webhook=True)

        assert answers == [(200, {"challenge": "abc"})]
        assert sub.webhook_id == 99
        assert sdk.calls[0][0] == queries.CREATE_WEBHOOK_MUTATION
        assert sdk.calls[0][1]["url"] == "https://hooks.example.com/monday-event"

    async def test_created_webhook_deleted_on_off(self, connector, sdk):
        sdk.queue(
            {"data": {"create_webhook": {"id": "99"}}},
            {"data": {"delete_webhook": {"id": "99"}}},
        )
        sub = await connector.subscribe(BOARD, "CreateItem", Recorder(), create_webhook=True)
        await connector.off(sub)
        assert sdk.calls[1] == (queries.DELETE_WEBHOOK_MUTATION, {"id": 99})

    async def test_specific_column_webhook_config(self, connector, sdk):
        sdk.queue({"data": {"create_webhook": {"id": "99"}}})
        await connector.subscribe(
            BOARD, "ChangeSpecificColumnValue", Recorder(),
            column_id="987654321", create_webhook=True,
        )
        assert json.loads(sdk.calls[0][1]["config"]) == {"columnId": "987654321"}

    async def test_without_create_webhook_sends_nothing(self, connector, sdk):
        sub = await connector.subscribe(BOARD, "CreateItem", Recorder())
        assert sub.webhook_id is None
        assert sdk.calls == []
        assert connector.delegate_installed

    async def test_second_handler_reuses_webhook(self, connector, sdk):
        sdk.queue({"data": {"create_webhook": {"id": "99"}}})
        first = await connector.subscribe(BOARD, "CreateItem", Recorder(), create_webhook=True)
        second = await connector.subscribe(BOARD, "CreateItem", Recorder(), create_webhook=True)
        assert first is second
        assert len(sdk.calls) == 1

    async def test_failed_creation_rolls_back_new_subscription(self, connector, sdk):
        sdk.queue({"errors": [{"message": "Invalid board"}]})
        with pytest.raises(MondayApiError):
            await connector.subscribe(BOARD, "CreateItem", Recorder(), create_webhook=True)
        assert connector.subscriptions == []
        assert not connector.delegate_installed

    async def test_failed_creation_keeps_existing_subscription(self, connector, sdk):
        existing = connector.on(BOARD, "CreateItem", Recorder())
        sdk.queue({"errors": [{"message": "Invalid board"}]})
        with pytest.raises(MondayApiError):
            await connector.subscribe(BOARD, "CreateItem", Recorder(), create_webhook=True)
        assert connector.subscriptions == [existing]

    async def test_validation_error_before_any_call(self, connector, sdk):
        with pytest.raises(MondayValidationError):
            await connector.subscribe(12, "CreateItem", Recorder(), create_webhook=True)
        assert sdk.calls == []
        assert connector.subscriptions == []


class TestUnregistration:
    async def test_off_removes_subscription_and_delegate(self, connector, bus):
        sub = connector.on(BOARD, "CreateItem", Recorder())
        assert await connector.off(sub) is True
        assert connector.subscriptions == []
        assert sub.id not in bus
        assert not connector.delegate_installed

    async def test_off_keeps_delegate_while_others_remain(self, connector):
        sub = connector.on(BOARD, "CreateItem", Recorder())
        connector.on(BOARD, "CreateUpdate", Recorder())
        await connector.off(sub.id)
        assert connector.delegate_installed

    async def test_off_unknown_returns_false(self, connector):
        assert await connector.off("Monday/nothing") is False

    async def test_off_without_webhook_sends_nothing(self, connector, sdk):
        sub = connector.on(BOARD, "CreateItem", Recorder())
        await connector.off(sub)
        assert sdk.calls == []

    async def test_off_deletes_webhook(self, connector, sdk):
        sdk.queue({"data": {"delete_webhook": {"id": "4321"}}})
        sub = connector.on(BOARD, "CreateItem", Recorder(), webhook_id=4321)
        await connector.off(sub)
        assert sdk.calls == [(queries.DELETE_WEBHOOK_MUTATION, {"id": 4321})]

    async def test_off_respects_delete_on_exit_false(self, connector, sdk):
        sub = connector.on(
            BOARD, "CreateItem", Recorder(), webhook_id=4321, delete_webhook_on_exit=False
        )
        await connector.off(sub)
        assert sdk.calls == []

    async def test_off_webhook_delete_failure_is_swallowed(self, connector, sdk):
        sdk.queue({"errors": [{"message": "not found"}]})
        sub = connector.on(BOARD, "CreateItem", Recorder(), webhook_id=4321)
        assert await connector.off(sub) is True
        assert len(sdk.calls) == 1
        assert connector.subscriptions == []


# ---------------------------------------------------------------------------
# Webhook lifecycle helpers
# ---------------------------------------------------------------------------

class TestCreateEventWebhook:
    async def test_uses_base_url_and_path(self, connector, sdk):
        sdk.queue({"data": {"create_webhook": {"id": "99"}}})
        webhook_id = await connector.create_event_webhook(BOARD, "CreateItem")
        assert webhook_id == 99
        query, variables = sdk.calls[0]
        assert query == queries.CREATE_WEBHOOK_MUTATION
        assert variables == {
            "board_id": "123456789",
            "url": "https://hooks.example.com/monday-event",
            "event": "create_item",
        }

    async def test_specific_column_config(self, connector, sdk):
        sdk.queue({"data": {"create_webhook": {"id": "99"}}})
        await connector.create_event_webhook(
            BOARD, "ChangeSpecificColumnValue", column_id=987654321
        )
        variables = sdk.calls[0][1]
        assert variables["event"] == "change_specific_column_value"
        assert json.loads(variables["config"]) == {"columnId": "987654321"}

    async def test_requires_base_url(self, sdk, bus):
        config = WebhooksConfig()
        connector = MondayConnector(sdk, bus, WebhookServer(config), config)
        with pytest.raises(MondayValidationError, match="base URL"):
            await connector.create_event_webhook(BOARD, "CreateItem")
        assert sdk.calls == []

    async def test_api_error_propagates(self, connector, sdk):
        sdk.queue({"errors": [{"message": "Invalid board"}]})
        with pytest.raises(MondayApiError, match="Invalid board"):
            await connector.create_event_webhook(BOARD, "CreateItem")


# ---------------------------------------------------------------------------
# Inbound deliveries
# ---------------------------------------------------------------------------

class TestDispatch:
    async def test_challenge_echoed_without_dispatch(self, connector, client):
        recorder = Recorder()
        connector.on(BOARD, "ChangeColumnValue", recorder)

        resp = await client.post("/monday-event", json={"challenge": "3eZbrw1aBm2rZgRNFdxV2595E9CY3gmdALWMmHkvFXO7tYXAYM8P"})
        assert resp.status == 200
        assert await resp.json() == {
            "challenge": "3eZbrw1aBm2rZgRNFdxV2595E9CY3gmdALWMmHkvFXO7tYXAYM8P"
        }
        assert recorder.events == []

    async def test_no_subscriptions_no_delegate(self, client):
        resp = await client.post("/monday-event", json=_event())
        assert resp.status == 404

    async def test_event_normalized_and_dispatched(self, connector, client):
        recorder = Recorder()
        connector.on(BOARD, "ChangeColumnValue", recorder)

        resp = await client.post("/monday-event", json=_event())
        assert resp.status == 200
        assert await resp.json() == {"success": True, "handled": True}

        assert len(recorder.events) == 1
        event = recorder.events[0]
        assert event.board_id == "123456789"
        assert event.item_id == "55"
        assert event.pulse_id == "55"
        assert event.item_name == "Task"
        assert event.type is MondayEventType.CHANGE_COLUMN_VALUE
        assert event.changed_at == 100
        data = event.as_dict()
        assert data["boardId"] == "123456789"
        assert data["itemId"] == "55"
        assert data["itemName"] == "Task"
        assert data["type"] == "ChangeColumnValue"
        assert data["changedAt"] == 100

    async def test_identical_redelivery_is_noop(self, connector, client):
        recorder = Recorder()
        connector.on(BOARD, "ChangeColumnValue", recorder)

        await client.post("/monday-event", json=_event())
        resp = await client.post("/monday-event", json=_event())
        assert resp.status == 200
        assert (await resp.json())["duplicate"] is True
        assert len(recorder.events) == 1

    async def test_different_changed_at_each_dispatched(self, connector, client):
        recorder = Recorder()
        connector.on(BOARD, "ChangeColumnValue", recorder)

        await client.post("/monday-event", json=_event(changedAt=100))
        await client.post("/monday-event", json=_event(changedAt=101))
        assert [e.changed_at for e in recorder.events] == [100, 101]

    async def test_older_redelivery_after_newer_is_dispatched(self, connector, client):
        recorder = Recorder()
        connector.on(BOARD, "ChangeColumnValue", recorder)

        for changed_at in (100, 101, 100):
            await client.post("/monday-event", json=_event(changedAt=changed_at))
        assert len(recorder.events) == 3

    async def test_missing_changed_at_never_deduplicated(self, connector, client):
        recorder = Recorder()
        connector.on(BOARD, "ChangeColumnValue", recorder)
        payload = _event()
        del payload["event"]["changedAt"]

        await client.post("/monday-event", json=payload)
        await client.post("/monday-event", json=payload)
        assert len(recorder.events) == 2

    async def test_only_matching_subscriptions_receive(self, connector, client):
        column_changes, creations, other_board = Recorder(), Recorder(), Recorder()
        connector.on(BOARD, "ChangeColumnValue", column_changes)
        connector.on(BOARD, "CreateItem", creations)
        connector.on(987654321, "ChangeColumnValue", other_board)

        await client.post("/monday-event", json=_event())
        assert len(column_changes.events) == 1
        assert creations.events == []
        assert other_board.events == []

    async def test_unknown_event_type_matches_nothing(self, connector, client):
        recorder = Recorder()
        connector.on(BOARD, "ChangeColumnValue", recorder)

        resp = await client.post("/monday-event", json=_event(type="move_pulse_into_group"))
        assert resp.status == 200
        assert await resp.json() == {"success": True, "handled": False}
        assert recorder.events == []

    async def test_fan_out_in_registration_order(self, connector, client):
        order = []

        def make(name):
            async def handler(event):
                order.append(name)
            return handler

        connector.on(BOARD, "ChangeColumnValue", make("a"))
        connector.on(BOARD, "ChangeColumnValue", make("b"))
        await client.post("/monday-event", json=_event())
        assert order == ["a", "b"]

    async def test_handler_failure_aborts_fan_out(self, connector, client):
        later = Recorder()

        async def failing(event):
            raise RuntimeError("handler failed")

        connector.on(BOARD, "ChangeColumnValue", failing)
        connector.on(BOARD, "ChangeColumnValue", later)

        resp = await client.post("/monday-event", json=_event())
        assert resp.status == 500
        assert later.events == []

    async def test_unsubscribed_handler_not_called(self, connector, client):
        recorder, keeper = Recorder(), Recorder()
        sub = connector.on(BOARD, "ChangeColumnValue", recorder)
        connector.on(BOARD, "CreateItem", keeper)
        await connector.off(sub)

        await client.post("/monday-event", json=_event())
        assert recorder.events == []

    async def test_invalid_json_returns_400(self, connector, client):
        connector.on(BOARD, "ChangeColumnValue", Recorder())
        resp = await client.post(
            "/monday-event",
            data=b"not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status == 400

    async def test_missing_event_returns_400(self, connector, client):
        connector.on(BOARD, "ChangeColumnValue", Recorder())
        resp = await client.post("/monday-event", json={"something": "else"})
        assert resp.status == 400

    async def test_non_object_body_returns_400(self, connector, client):
        connector.on(BOARD, "ChangeColumnValue", Recorder())
        resp = await client.post("/monday-event", json=["event"])
        assert resp.status == 400
