"""
Chain configuration for impact-guard: where pool state is read from.
"""

from dataclasses import dataclass
from typing import Any, Dict

from .base import BaseConfig

# Uniswap v4 PoolManager on Sepolia
SEPOLIA_POOL_MANAGER = "0xE03A1074c86CFeDd5C142C4F04F1a1536e203543"


@dataclass
class ChainConfig(BaseConfig):
    """RPC endpoint and PoolManager storage layout."""

    RPC_URL: str = BaseConfig.get_env("RPC_URL", "https://ethereum-sepolia-rpc.publicnode.com")
    CHAIN_ID: int = BaseConfig.get_env_int("CHAIN_ID", 11155111, min_value=1)

    POOL_MANAGER_ADDRESS: str = BaseConfig.get_env_address("POOL_MANAGER_ADDRESS", SEPOLIA_POOL_MANAGER)

    # Storage slot of PoolManager's `pools` mapping
    POOLS_SLOT: int = BaseConfig.get_env_int("POOLS_SLOT", 6, min_value=0)

    # Offset of `liquidity` inside Pool.State
    LIQUIDITY_OFFSET: int = 3

    def get_reader_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for PoolManagerStateReader, minus the web3 instance."""
        return {
            "pool_manager_address": self.POOL_MANAGER_ADDRESS,
            "pools_slot": self.POOLS_SLOT,
            "liquidity_offset": self.LIQUIDITY_OFFSET,
        }
