"""
Uniswap v4 PoolManager state reader.

Reads Slot0 and liquidity straight from PoolManager storage through
`extsload`, so no lens contract has to be deployed.

Storage layout:
- Pool.State base slot: keccak256(abi.encode(poolId, POOLS_SLOT))
- Slot0 at offset 0, packed as
  sqrtPriceX96 (bits 0-159) | tick int24 (160-183) | protocolFee (184-207) | lpFee (208-231)
- liquidity (uint128) at offset 3
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Union

from eth_abi import encode
from hexbytes import HexBytes
from web3 import Web3

from .base import PoolState, PoolStateReader, PoolStateReadError

logger = logging.getLogger(__name__)

POOL_MANAGER_ABI = [
    {
        "type": "function",
        "name": "extsload",
        "inputs": [{"name": "slot", "type": "bytes32"}],
        "outputs": [{"name": "", "type": "bytes32"}],
        "stateMutability": "view",
    },
]

DEFAULT_POOLS_SLOT = 6
LIQUIDITY_OFFSET = 3

_UINT160_MASK = (1 << 160) - 1
_UINT128_MASK = (1 << 128) - 1
_UINT24_MASK = (1 << 24) - 1


@dataclass(frozen=True)
class Slot0:
    """Decoded PoolManager Slot0 word."""

    sqrt_price_x96: int
    tick: int
    protocol_fee: int
    lp_fee: int


def pool_id_bytes(pool_id: Union[str, bytes]) -> bytes:
    """Normalize a pool id (hex string or bytes) to 32 bytes."""
    try:
        raw = bytes(HexBytes(pool_id))
    except (ValueError, TypeError) as e:
        raise PoolStateReadError(f"Invalid pool id {pool_id!r}: {e}")
    if len(raw) != 32:
        raise PoolStateReadError(f"Pool id must be 32 bytes, got {len(raw)}: {pool_id!r}")
    return raw


def pool_state_slot(pool_id: Union[str, bytes], pools_slot: int = DEFAULT_POOLS_SLOT) -> bytes:
    """Calculate Pool.State base slot: keccak256(abi.encode(poolId, pools_slot))"""
    encoded = encode(["bytes32", "uint256"], [pool_id_bytes(pool_id), pools_slot])
    return bytes(Web3.keccak(encoded))


def add_offset_to_slot(slot: bytes, offset: int) -> bytes:
    """Add offset to storage slot"""
    return ((int.from_bytes(slot, "big") + offset) % (1 << 256)).to_bytes(32, "big")


def parse_slot0(word: Union[bytes, int]) -> Slot0:
    """Decode a packed Slot0 storage word."""
    value = word if isinstance(word, int) else int.from_bytes(bytes(word), "big")
    tick = (value >> 160) & _UINT24_MASK
    # Sign-extend 24-bit tick
    if tick >= 1 << 23:
        tick -= 1 << 24
    return Slot0(
        sqrt_price_x96=value & _UINT160_MASK,
        tick=tick,
        protocol_fee=(value >> 184) & _UINT24_MASK,
        lp_fee=(value >> 208) & _UINT24_MASK,
    )


def parse_liquidity(word: Union[bytes, int]) -> int:
    value = word if isinstance(word, int) else int.from_bytes(bytes(word), "big")
    return value & _UINT128_MASK


class PoolManagerStateReader(PoolStateReader):
    """
    Reads protected and reference pool state from a v4 PoolManager.

    read_many pins one block number so every pool in an evaluation is read
    at the same instant.
    """

    def __init__(
        self,
        web3: Web3,
        pool_manager_address: str,
        pools_slot: int = DEFAULT_POOLS_SLOT,
        liquidity_offset: int = LIQUIDITY_OFFSET,
    ):
        """
        Initialize the reader.

        Args:
            web3: Web3 instance
            pool_manager_address: PoolManager contract address
            pools_slot: Storage slot of the `pools` mapping
            liquidity_offset: Offset of `liquidity` inside Pool.State
        """
        self.web3 = web3
        self.pools_slot = pools_slot
        self.liquidity_offset = liquidity_offset
        self.pool_manager = web3.eth.contract(
            address=Web3.to_checksum_address(pool_manager_address),
            abi=POOL_MANAGER_ABI,
        )
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @classmethod
    def from_config(cls, chain_config=None, web3: Optional[Web3] = None) -> "PoolManagerStateReader":
        """
        Build a reader from ChainConfig, over HTTP unless a web3 instance is given.

        Raises:
            PoolStateReadError: If the endpoint is unreachable or serves another chain than CHAIN_ID
        """
        if chain_config is None:
            from ..config import get_config
            chain_config = get_config().chains
        if web3 is None:
            web3 = Web3(Web3.HTTPProvider(chain_config.RPC_URL))
        try:
            chain_id = web3.eth.chain_id
        except Exception as e:
            raise PoolStateReadError(f"Failed to query chain id from {chain_config.RPC_URL}: {e}") from e
        if chain_id != chain_config.CHAIN_ID:
            raise PoolStateReadError(
                f"RPC {chain_config.RPC_URL} serves chain {chain_id}, expected {chain_config.CHAIN_ID}"
            )
        return cls(web3, **chain_config.get_reader_kwargs())

    def _extsload(self, slot: bytes, block_identifier: Union[int, str]) -> bytes:
        return bytes(self.pool_manager.functions.extsload(slot).call(block_identifier=block_identifier))

    def read(self, pool_id: str, block_identifier: Optional[Union[int, str]] = None) -> PoolState:
        block = block_identifier if block_identifier is not None else "latest"
        base_slot = pool_state_slot(pool_id, self.pools_slot)
        try:
            slot0 = parse_slot0(self._extsload(base_slot, block))
            liquidity = parse_liquidity(
                self._extsload(add_offset_to_slot(base_slot, self.liquidity_offset), block)
            )
        except Exception as e:
            self.logger.error(f"Failed to read pool {pool_id} at block {block}: {e}")
            raise PoolStateReadError(f"Failed to read pool {pool_id}: {e}", pool_id) from e

        return PoolState(sqrt_price_x96=slot0.sqrt_price_x96, liquidity=liquidity, tick=slot0.tick)

    def _get_current_block(self) -> int:
        """Get current block number."""
        try:
            return self.web3.eth.block_number
        except Exception as e:
            self.logger.error(f"Failed to get current block: {e}")
            raise PoolStateReadError(f"Failed to get current block: {e}") from e

    def read_many(self, pool_ids: Iterable[str]) -> Dict[str, PoolState]:
        block = self._get_current_block()
        states = {}
        for pool_id in pool_ids:
            if pool_id not in states:
                states[pool_id] = self.read(pool_id, block_identifier=block)
        self.logger.debug(f"Read {len(states)} pools at block {block}")
        return states
