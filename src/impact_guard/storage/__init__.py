"""
State storage for pool configs and tracked reference prices.

Usage:
    from impact_guard.storage import RedisStateStore

    store = RedisStateStore.from_config()
    config = store.load_config(pool_id)
"""

from .base import ConnectionError, DataError, StateStore, StorageError
from .memory import MemoryStateStore
from .redis_store import RedisStateStore

__all__ = [
    "StateStore",
    "StorageError",
    "ConnectionError",
    "DataError",
    "MemoryStateStore",
    "RedisStateStore",
]
