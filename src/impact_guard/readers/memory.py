"""
In-memory pool state, for simulations and tests.
"""

import logging
from typing import Dict, Optional

from ..engine.price_math import next_sqrt_price
from .base import PoolState, PoolStateReader, PoolStateReadError

logger = logging.getLogger(__name__)


class InMemoryPoolStateReader(PoolStateReader):
    """
    Dictionary-backed pool states.

    Unknown pools read as uninitialized, mirroring an on-chain PoolManager.
    apply_swap settles a trade with the constant-liquidity math used by the
    impact estimator, so simulated settlements and estimates agree.
    """

    def __init__(self, states: Optional[Dict[str, PoolState]] = None):
        self._states: Dict[str, PoolState] = dict(states or {})

    def set_state(self, pool_id: str, sqrt_price_x96: int, liquidity: int = 0, tick: Optional[int] = None) -> PoolState:
        state = PoolState(sqrt_price_x96=sqrt_price_x96, liquidity=liquidity, tick=tick)
        self._states[pool_id] = state
        return state

    def set_price(self, pool_id: str, sqrt_price_x96: int) -> PoolState:
        """Move a pool's price, keeping its liquidity."""
        current = self._states.get(pool_id, PoolState(0, 0))
        return self.set_state(pool_id, sqrt_price_x96, current.liquidity)

    def read(self, pool_id: str) -> PoolState:
        return self._states.get(pool_id, PoolState(0, 0))

    def apply_swap(self, pool_id: str, amount: int, sells_base: bool) -> PoolState:
        """
        Settle a swap against a pool and return the new state.

        Raises:
            PoolStateReadError: If the pool has no liquidity or the swap would
                drain the range
        """
        state = self.read(pool_id)
        if state.liquidity == 0 or state.sqrt_price_x96 == 0:
            raise PoolStateReadError(f"Cannot swap against empty pool {pool_id}", pool_id)

        new_price = next_sqrt_price(
            amount=amount,
            liquidity=state.liquidity,
            sqrt_price_x96=state.sqrt_price_x96,
            sells_base=sells_base,
        )
        if new_price == 0:
            raise PoolStateReadError(f"Swap of {abs(amount)} drains pool {pool_id}", pool_id)

        logger.debug(f"Settled swap on {pool_id}: {state.sqrt_price_x96} -> {new_price}")
        return self.set_state(pool_id, new_price, state.liquidity)
