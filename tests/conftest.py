"""Shared fixtures."""

from __future__ import annotations

from typing import Any

import pytest


class FakeSdk:
    """Stands in for MondaySdk: records calls and replays queued responses."""

    def __init__(self, responses: list[dict[str, Any]] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[tuple[str, dict[str, Any] | None]] = []
        self.closed = False
        # Awaited with each call before its response is returned
        self.on_call = None

    def queue(self, *responses: dict[str, Any]) -> None:
        self.responses.extend(responses)

    async def api(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        self.calls.append((query, variables))
        if self.on_call is not None:
            await self.on_call(query, variables)
        if not self.responses:
            raise AssertionError(f"Unexpected Monday API call: {query.strip()[:60]}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def sdk():
    return FakeSdk()
