"""Persistence layer"""

from .backends import MemoryBackend, RedisBackend, create_backend
from .vendor_store import VendorStore
from .transaction_store import TransactionStore

__all__ = [
    "MemoryBackend",
    "RedisBackend",
    "create_backend",
    "VendorStore",
    "TransactionStore",
]
