"""Monday API client: query normalization plus board, item and webhook calls."""

from __future__ import annotations

import json
from typing import Any, Callable

from monday_connector.api import queries
from monday_connector.api.sdk import MondaySdk
from monday_connector.errors import MondayApiError, MondayLookupError, MondayValidationError
from monday_connector.utils.logging import get_logger

log = get_logger(__name__)

Updater = Callable[[Any], Any]

_NUMERIC_COLUMN_TYPES = frozenset({"numbers", "numeric"})


def _identity(value: Any) -> Any:
    return value


def _parse_value(raw: str | None) -> Any:
    return None if raw is None else json.loads(raw)


def _parse_number(value: Any) -> Any:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return float(value)
    except (TypeError, ValueError):
        return value


def _column_title(column_value: dict[str, Any]) -> str | None:
    if "title" in column_value:
        return column_value["title"]
    return (column_value.get("column") or {}).get("title")


def _stringify(value: Any) -> str:
    """Render an updater result the way Monday expects a column value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _as_list(ids: Any) -> list[Any]:
    return list(ids) if isinstance(ids, (list, tuple, set)) else [ids]


class MondayClient:
    """Wraps a :class:`MondaySdk` with a uniform data-or-raise contract.

    Every call sends one GraphQL document. Nothing is retried: transport
    errors and API errors reach the caller on the first failure.
    """

    def __init__(self, sdk: MondaySdk) -> None:
        self._sdk = sdk

    def sdk(self) -> MondaySdk:
        return self._sdk

    async def close(self) -> None:
        await self._sdk.close()

    # ------------------------------------------------------------------
    # Core query
    # ------------------------------------------------------------------

    async def query(self, query: str, variables: dict[str, Any] | None = None) -> Any:
        """Run a GraphQL document and return its ``data`` payload.

        Raises:
            MondayApiError: the response carries ``errors`` (even alongside
                partial ``data``) or no ``data`` at all.
        """
        res = await self._sdk.api(query, variables)
        if "data" in res and not res.get("errors"):
            return res["data"]
        err = MondayApiError(res)
        log.warning("monday_api_error", error=str(err), error_count=len(err.errors))
        raise err

    # ------------------------------------------------------------------
    # Boards, columns, groups, items
    # ------------------------------------------------------------------

    async def get_board(self, board_ids: int | str | list[int | str]) -> Any:
        return await self.query(queries.GET_BOARD_QUERY, {"board_ids": _as_list(board_ids)})

    async def get_board_id_by_name(self, name: str) -> int | None:
        page = 1
        while True:
            data = await self.query(
                queries.GET_BOARD_NAMES_QUERY,
                {"limit": queries.BOARDS_PAGE_SIZE, "page": page},
            )
            boards = (data or {}).get("boards") or []
            for board in boards:
                if board.get("name") == name:
                    return int(board["id"])
            # A short page is the last one
            if len(boards) < queries.BOARDS_PAGE_SIZE:
                return None
            page += 1

    def columns_values_to_object(
        self,
        column_values: list[dict[str, Any]],
        mapper: Callable[[Any], Any] = _identity,
    ) -> dict[str, Any]:
        return {
            _column_title(cv): mapper(_parse_value(cv.get("value")))
            for cv in column_values
        }

    async def get_board_items(self, board_id: int | str) -> dict[str, Any] | None:
        """Return ``{"name": ..., "items": {item_id: {title: value, "name": ...}}}``."""
        data = await self.query(
            queries.GET_BOARD_ITEMS_QUERY,
            {"board_ids": [board_id], "limit": queries.ITEMS_PAGE_SIZE},
        )
        boards = (data or {}).get("boards") or []
        if not boards:
            return None
        board = boards[0]

        items: dict[str, dict[str, Any]] = {}
        page = board.get("items_page") or {}
        while True:
            for item in page.get("items") or []:
                values: dict[str, Any] = {}
                for cv in item.get("column_values") or []:
                    value = _parse_value(cv.get("value"))
                    if cv.get("type") in _NUMERIC_COLUMN_TYPES:
                        value = _parse_number(value)
                    values[_column_title(cv)] = value
                values["name"] = item.get("name")
                items[str(item["id"])] = values

            cursor = page.get("cursor")
            if not cursor:
                break
            data = await self.query(
                queries.GET_NEXT_ITEMS_PAGE_QUERY,
                {"cursor": cursor, "limit": queries.ITEMS_PAGE_SIZE},
            )
            page = (data or {}).get("next_items_page") or {}
        return {"name": board.get("name"), "items": items}

    async def get_column(self, board_ids: int | str | list[int | str]) -> Any:
        return await self.query(queries.GET_COLUMNS_QUERY, {"board_ids": _as_list(board_ids)})

    async def get_group(
        self,
        board_ids: int | str | list[int | str],
        group_ids: str | list[str],
    ) -> Any:
        return await self.query(
            queries.GET_GROUPS_QUERY,
            {"board_ids": _as_list(board_ids), "group_ids": _as_list(group_ids)},
        )

    async def get_item(self, item_ids: int | str | list[int | str]) -> Any:
        return await self.query(queries.GET_ITEMS_QUERY, {"item_ids": _as_list(item_ids)})

    async def create_item(
        self,
        board_id: int | str,
        item_name: str,
        column_values: dict[str, Any] | None = None,
        group_id: str | None = None,
    ) -> str:
        """Create an item and return its id.

        ``column_values`` maps column titles to values or updater callables
        and is applied to the new item with :meth:`update_column_values`.
        """
        variables: dict[str, Any] = {"board_id": board_id, "item_name": item_name}
        if group_id is not None:
            variables["group_id"] = group_id
        data = await self.query(queries.CREATE_ITEM_MUTATION, variables)
        item_id = str(data["create_item"]["id"])
        log.info("monday_item_created", board_id=str(board_id), item_id=item_id)

        if column_values:
            updaters = {
                title: value if callable(value) else (lambda _old, v=value: v)
                for title, value in column_values.items()
            }
            await self.update_column_values(board_id, item_id, updaters)
        return item_id

    async def update_item(self, item_id: int | str, body: str) -> Any:
        return await self.query(
            queries.CREATE_UPDATE_MUTATION, {"item_id": item_id, "body": body}
        )

    async def update_column_values(
        self,
        board_id: int | str,
        item_id: int | str,
        updaters: dict[str, Updater],
    ) -> Any:
        """Apply ``updaters`` (title -> fn(old value)) in one batched mutation.

        Every title is resolved before anything is sent, so a missing column
        leaves the item untouched.
        """
        data = await self.query(queries.GET_ITEM_COLUMN_VALUES_QUERY, {"item_ids": [item_id]})
        items = (data or {}).get("items") or []
        if not items:
            raise MondayLookupError(f"Unable to read item: {item_id}")

        column_values = items[0].get("column_values") or []
        new_values: dict[str, str] = {}
        for title, updater in updaters.items():
            cv = next((c for c in column_values if _column_title(c) == title), None)
            if cv is None:
                raise MondayLookupError(f"Column title not found: {title}")
            if not callable(updater):
                raise MondayValidationError(f"Missing or invalid updater for: {title}")
            new_values[cv["id"]] = _stringify(updater(_parse_value(cv.get("value"))))

        return await self.query(
            queries.CHANGE_COLUMN_VALUES_MUTATION,
            {
                "board_id": board_id,
                "item_id": item_id,
                "column_values": json.dumps(new_values),
            },
        )

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def create_webhook(
        self,
        board_id: int | str,
        url: str,
        event: str,
        config: dict[str, Any] | None = None,
    ) -> int:
        variables: dict[str, Any] = {"board_id": board_id, "url": url, "event": event}
        if config is not None:
            variables["config"] = json.dumps(config)
        data = await self.query(queries.CREATE_WEBHOOK_MUTATION, variables)
        webhook_id = int(data["create_webhook"]["id"])
        log.info("monday_webhook_created", webhook_id=webhook_id, board_id=str(board_id), event=event)
        return webhook_id

    async def delete_webhook(self, webhook_id: int | str) -> Any:
        data = await self.query(queries.DELETE_WEBHOOK_MUTATION, {"id": webhook_id})
        log.info("monday_webhook_deleted", webhook_id=webhook_id)
        return data
