"""Connector exceptions."""

from __future__ import annotations

from typing import Any


class MondayError(Exception):
    """Base for every error raised by the connector."""


class MondayValidationError(MondayError, ValueError):
    """Invalid subscription or call arguments, detected before any I/O."""


class MondayLookupError(MondayError, LookupError):
    """An item or column referenced by the caller does not exist."""


class MondayApiError(MondayError):
    """The Monday API answered with ``errors`` or ``error_message``."""

    def __init__(self, response: dict[str, Any]) -> None:
        self.response = response
        self.errors: list[dict[str, Any]] = list(response.get("errors") or [])
        self.error_message: str | None = response.get("error_message")
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        if self.errors:
            if len(self.errors) == 1:
                return f"Monday API Error: {self.errors[0].get('message', '')}"
            return f"Monday API Errors ({len(self.errors)})"
        if self.error_message:
            return f"Monday API Error: {self.error_message}"
        return "Monday API Error"
