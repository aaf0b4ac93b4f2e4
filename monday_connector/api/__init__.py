"""Monday GraphQL API access."""

from .client import MondayClient
from .sdk import MondaySdk

__all__ = ["MondayClient", "MondaySdk"]
