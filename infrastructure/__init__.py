"""Infrastructure helpers."""

from .settings import get_settings, load_settings, MonitorSettings
from .errors import (
    ConfigurationError,
    DeliveryError,
    FetchError,
    MalformedEntryError,
    MonitorError,
)

__all__ = [
    "get_settings",
    "load_settings",
    "MonitorSettings",
    "ConfigurationError",
    "DeliveryError",
    "FetchError",
    "MalformedEntryError",
    "MonitorError",
]
