"""Core infrastructure: settings, logging, exceptions."""

from .config import Settings, get_settings, settings
from .exceptions import AnalyticsError, InvalidParameterError, MalformedPointError
from .logging import get_logger, setup_logging


__all__ = [
    "AnalyticsError",
    "InvalidParameterError",
    "MalformedPointError",
    "Settings",
    "get_logger",
    "get_settings",
    "settings",
    "setup_logging",
]
