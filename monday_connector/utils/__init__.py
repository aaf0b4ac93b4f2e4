"""Utility modules for the Monday connector."""

from .logging import get_logger, register_secret, setup_logging

__all__ = ["get_logger", "register_secret", "setup_logging"]
