"""
In-process state store.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..engine.models import PoolConfig
from .base import StateStore, check_tracking_length

logger = logging.getLogger(__name__)


class MemoryStateStore(StateStore):
    """Dictionary-backed store; state lives as long as the process."""

    def __init__(self):
        self._configs: Dict[str, PoolConfig] = {}
        self._prices: Dict[str, List[int]] = {}

    def load_config(self, pool_id: str) -> Optional[PoolConfig]:
        return self._configs.get(pool_id)

    def save_config(self, pool_id: str, config: PoolConfig) -> None:
        self._configs[pool_id] = config

    def load_reference_prices(self, pool_id: str) -> List[int]:
        return list(self._prices.get(pool_id, []))

    def save_reference_prices(self, pool_id: str, prices: Sequence[int]) -> None:
        self._prices[pool_id] = [int(p) for p in prices]

    def save_registration(self, pool_id: str, config: PoolConfig, prices: Sequence[int]) -> None:
        check_tracking_length(pool_id, config, prices)
        self._configs[pool_id] = config
        self._prices[pool_id] = [int(p) for p in prices]
