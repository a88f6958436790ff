"""
Pool state readers.

The engine consumes a PoolStateReader; this package provides an in-memory
implementation for simulations and one backed by a Uniswap v4 PoolManager.
"""

from .base import PoolState, PoolStateReader, PoolStateReadError
from .memory import InMemoryPoolStateReader
from .pool_manager import PoolManagerStateReader, Slot0, parse_slot0, pool_state_slot

__all__ = [
    "PoolState",
    "PoolStateReader",
    "PoolStateReadError",
    "InMemoryPoolStateReader",
    "PoolManagerStateReader",
    "Slot0",
    "parse_slot0",
    "pool_state_slot",
]
