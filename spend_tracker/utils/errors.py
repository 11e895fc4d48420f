"""Custom exceptions for the spend tracker"""

from typing import Optional


class SpendTrackerError(Exception):
    """Base exception for spend tracker errors"""
    pass


class ConfigurationError(SpendTrackerError):
    """Configuration loading errors"""
    pass


class ValidationError(SpendTrackerError):
    """Caller input rejected before any computation runs"""
    pass


class ProviderError(SpendTrackerError):
    """Upstream transaction provider errors (transport, HTTP status, payload)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StorageError(SpendTrackerError):
    """Document store errors"""
    pass


class NotFoundError(SpendTrackerError):
    """Referenced vendor or transaction does not exist"""
    pass


class SyncError(SpendTrackerError):
    """A sync run failed; nothing from the batch was written"""

    def __init__(self, message: str, stage: str):
        super().__init__(f"[{stage}] {message}")
        self.stage = stage
