"""Thin async transport for the Monday GraphQL endpoint."""

from __future__ import annotations

from typing import Any

import httpx

from monday_connector.config import ApiConfig
from monday_connector.utils.logging import get_logger

log = get_logger(__name__)


class MondaySdk:
    """Posts GraphQL documents and returns the decoded response body.

    The body is returned as-is, including ``errors``; interpreting it is
    the caller's job. Monday reports most failures with a JSON body, so a
    non-2xx status only raises when the body is not JSON.
    """

    def __init__(self, config: ApiConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config
        self._client = httpx.AsyncClient(
            timeout=config.timeout,
            transport=transport,
            headers={
                "Authorization": config.token,
                "API-Version": config.version,
                "Content-Type": "application/json",
            },
        )

    async def __aenter__(self) -> MondaySdk:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def api(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        resp = await self._client.post(self._config.url, json=payload)
        try:
            body = resp.json()
        except ValueError:
            resp.raise_for_status()
            raise
        log.debug("monday_api_response", status=resp.status_code, has_data="data" in body)
        return body

    async def close(self) -> None:
        await self._client.aclose()
