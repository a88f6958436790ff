"""
Base classes and interfaces for the engine's state store.

A store owns two things per protected pool: its PoolConfig and the tracked
reference sqrt prices, one per reference index.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
import logging

from ..engine.models import PoolConfig

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for storage-related errors."""
    pass


class ConnectionError(StorageError):
    """Raised when connection to storage backend fails."""
    pass


class DataError(StorageError):
    """Raised when stored data cannot be decoded or written."""
    pass


class StateStore(ABC):
    """
    Abstract base class for config and tracking state storage.
    All storage backends must implement these methods.
    """

    @abstractmethod
    def load_config(self, pool_id: str) -> Optional[PoolConfig]:
        """Config for a protected pool, or None if it was never registered."""
        pass

    @abstractmethod
    def save_config(self, pool_id: str, config: PoolConfig) -> None:
        """Create or replace a protected pool's config."""
        pass

    @abstractmethod
    def load_reference_prices(self, pool_id: str) -> List[int]:
        """Tracked reference prices in reference order (empty if none)."""
        pass

    @abstractmethod
    def save_reference_prices(self, pool_id: str, prices: Sequence[int]) -> None:
        """Replace the whole tracked price list of a protected pool."""
        pass

    def save_registration(self, pool_id: str, config: PoolConfig, prices: Sequence[int]) -> None:
        """
        Store a config together with its initial tracked prices.

        Backends that can write both in one transaction override this.

        Raises:
            DataError: If there is not exactly one price per reference
        """
        check_tracking_length(pool_id, config, prices)
        self.save_config(pool_id, config)
        self.save_reference_prices(pool_id, prices)


def check_tracking_length(pool_id: str, config: PoolConfig, prices: Sequence[int]) -> None:
    if len(prices) != len(config.references):
        raise DataError(
            f"Pool {pool_id} has {len(config.references)} references but {len(prices)} tracked prices"
        )
