"""
Pool state reader interface.

The decision engine never caches pool state: every evaluation reads the
protected pool and all of its references fresh through a PoolStateReader.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)


class PoolStateReadError(Exception):
    """Raised when pool state cannot be read. Fatal to the trade being evaluated."""

    def __init__(self, message: str, pool_id: Optional[str] = None):
        super().__init__(message)
        self.pool_id = pool_id


@dataclass(frozen=True)
class PoolState:
    """
    Pool state snapshot.

    Attributes:
        sqrt_price_x96: Current sqrtPriceX96 (0 if the pool is not initialized)
        liquidity: Active liquidity
        tick: Current tick, if the source exposes it
    """

    sqrt_price_x96: int
    liquidity: int
    tick: Optional[int] = None

    @property
    def is_initialized(self) -> bool:
        return self.sqrt_price_x96 != 0


class PoolStateReader(ABC):
    """
    Abstract base class for pool state sources.

    Implementations must return state consistent with the instant immediately
    before the pending trade settles.
    """

    @abstractmethod
    def read(self, pool_id: str) -> PoolState:
        """
        Read the current state of a single pool.

        Raises:
            PoolStateReadError: If the state cannot be read
        """
        pass

    def read_many(self, pool_ids: Iterable[str]) -> Dict[str, PoolState]:
        """
        Read several pools as one snapshot.

        The default reads pools one after another; sources that can pin a
        block or a transaction should override this.
        """
        states = {}
        for pool_id in pool_ids:
            if pool_id not in states:
                states[pool_id] = self.read(pool_id)
        return states
