"""Monday.com connector: GraphQL API client and webhook event dispatch."""

from .connector import MondayConnector
from .errors import MondayApiError, MondayError, MondayLookupError, MondayValidationError

__version__ = "0.1.0"

__all__ = [
    "MondayApiError",
    "MondayConnector",
    "MondayError",
    "MondayLookupError",
    "MondayValidationError",
]
