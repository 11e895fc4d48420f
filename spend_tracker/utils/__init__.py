"""Utility modules"""

from .config_loader import load_config, get_section
from .errors import (
    SpendTrackerError,
    ConfigurationError,
    ValidationError,
    ProviderError,
    StorageError,
    NotFoundError,
    SyncError
)

__all__ = [
    "load_config",
    "get_section",
    "SpendTrackerError",
    "ConfigurationError",
    "ValidationError",
    "ProviderError",
    "StorageError",
    "NotFoundError",
    "SyncError"
]
