"""
Redis-backed state store.

Keys:
- {prefix}:config:{pool_id}  JSON document of the PoolConfig
- {prefix}:refs:{pool_id}    hash of reference index -> sqrt price (decimal string)

Prices are stored as strings since sqrtPriceX96 exceeds 64 bits.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import redis
import ujson

from ..engine.errors import ConfigurationError
from ..engine.models import PoolConfig
from .base import ConnectionError, DataError, StateStore, StorageError, check_tracking_length

logger = logging.getLogger(__name__)


class RedisStateStore(StateStore):
    """
    Synchronous Redis store.

    Evaluations have no suspension points, so this uses the blocking client.
    Replacing the tracked prices, alone or together with a new config at
    registration, runs in a MULTI/EXEC pipeline so readers never observe a
    half-written list or a config without its matching prices.
    """

    def __init__(self, client: redis.Redis, key_prefix: str = "impact_guard"):
        """
        Initialize Redis store.

        Args:
            client: Redis client created with decode_responses=True
            key_prefix: Namespace for all keys written by the store
        """
        self.client = client
        self.key_prefix = key_prefix

    @classmethod
    def from_config(cls, database_config=None) -> "RedisStateStore":
        """Connect using DatabaseConfig and verify the connection."""
        if database_config is None:
            from ..config import get_config
            database_config = get_config().database
        client = redis.Redis(**database_config.get_redis_connection_kwargs())
        try:
            client.ping()
        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise ConnectionError(f"Redis connection failed: {e}") from e
        logger.info(f"Connected to Redis at {database_config.redis_location}")
        return cls(client, key_prefix=database_config.REDIS_KEY_PREFIX)

    def _config_key(self, pool_id: str) -> str:
        return f"{self.key_prefix}:config:{pool_id}"

    def _refs_key(self, pool_id: str) -> str:
        return f"{self.key_prefix}:refs:{pool_id}"

    def load_config(self, pool_id: str) -> Optional[PoolConfig]:
        try:
            raw = self.client.get(self._config_key(pool_id))
        except redis.RedisError as e:
            logger.error(f"Failed to load config for {pool_id}: {e}")
            raise StorageError(f"Failed to load config for {pool_id}: {e}") from e
        if raw is None:
            return None
        try:
            return PoolConfig.from_dict(ujson.loads(raw))
        except (ValueError, ConfigurationError) as e:
            raise DataError(f"Corrupt config stored for {pool_id}: {e}") from e

    def save_config(self, pool_id: str, config: PoolConfig) -> None:
        try:
            self.client.set(self._config_key(pool_id), ujson.dumps(config.to_dict()))
        except redis.RedisError as e:
            logger.error(f"Failed to save config for {pool_id}: {e}")
            raise StorageError(f"Failed to save config for {pool_id}: {e}") from e

    def load_reference_prices(self, pool_id: str) -> List[int]:
        try:
            raw: Dict[str, Any] = self.client.hgetall(self._refs_key(pool_id))
        except redis.RedisError as e:
            logger.error(f"Failed to load reference prices for {pool_id}: {e}")
            raise StorageError(f"Failed to load reference prices for {pool_id}: {e}") from e
        try:
            indexed = {int(index): int(price) for index, price in raw.items()}
        except ValueError as e:
            raise DataError(f"Corrupt reference prices stored for {pool_id}: {e}") from e
        if not indexed:
            return []
        return [indexed.get(i, 0) for i in range(max(indexed) + 1)]

    def save_reference_prices(self, pool_id: str, prices: Sequence[int]) -> None:
        try:
            pipe = self.client.pipeline(transaction=True)
            self._queue_reference_prices(pipe, pool_id, prices)
            pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Failed to save reference prices for {pool_id}: {e}")
            raise StorageError(f"Failed to save reference prices for {pool_id}: {e}") from e

    def save_registration(self, pool_id: str, config: PoolConfig, prices: Sequence[int]) -> None:
        """Write the config and its tracked prices in one MULTI/EXEC."""
        check_tracking_length(pool_id, config, prices)
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.set(self._config_key(pool_id), ujson.dumps(config.to_dict()))
            self._queue_reference_prices(pipe, pool_id, prices)
            pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Failed to save registration for {pool_id}: {e}")
            raise StorageError(f"Failed to save registration for {pool_id}: {e}") from e

    def _queue_reference_prices(self, pipe, pool_id: str, prices: Sequence[int]) -> None:
        key = self._refs_key(pool_id)
        pipe.delete(key)
        if prices:
            pipe.hset(key, mapping={str(i): str(int(p)) for i, p in enumerate(prices)})
