"""
Domain models for the decision engine.

Attributes are plain Python ints: sqrt prices in Q96 fixed point, fees in
pips (hundredths of a bip, 1_000_000 = 100%), thresholds in bps.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .aggregation import AggregationMode
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# LPFeeLibrary.OVERRIDE_FEE_FLAG: marks a beforeSwap fee as a per-swap override
OVERRIDE_FEE_FLAG = 0x400000


@dataclass(frozen=True)
class ReferencePool:
    """
    Reference market for a protected pool.

    Attributes:
        pool_id: Reference pool identifier
        inverted: True when the protected base asset sits on the other side of
            the reference pair, so the reference price axis runs the other way
    """

    pool_id: str
    inverted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"pool_id": self.pool_id, "inverted": self.inverted}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReferencePool":
        try:
            return cls(pool_id=str(data["pool_id"]), inverted=bool(data.get("inverted", False)))
        except (KeyError, TypeError) as e:
            raise ConfigurationError(f"Invalid reference pool entry {data!r}: {e}")


@dataclass(frozen=True)
class PoolConfig:
    """
    Protection settings for one protected pool.

    Attributes:
        references: Ordered reference pools (1-5); order fixes the tracking index
        base_fee: Fee for trades explained by the references
        elevated_fee: Fee for trades with moderate unexplained impact
        elevated_threshold_bps: Unexplained impact that earns the elevated fee
        reject_threshold_bps: Unexplained impact that trips the circuit breaker
        max_reference_move_cap_bps: Cap on a single reference's contribution, 0 = uncapped
        aggregation_mode: How aligned reference moves are combined
    """

    references: Tuple[ReferencePool, ...]
    base_fee: int
    elevated_fee: int
    elevated_threshold_bps: int
    reject_threshold_bps: int
    max_reference_move_cap_bps: int = 0
    aggregation_mode: AggregationMode = AggregationMode.MAXIMUM

    def __post_init__(self):
        # Stored as a tuple so configs stay hashable
        object.__setattr__(self, "references", tuple(self.references))

    @property
    def reference_ids(self) -> Tuple[str, ...]:
        return tuple(ref.pool_id for ref in self.references)

    def validate(self, max_references: int = 5, max_fee: int = 1_000_000, strict: bool = True) -> "PoolConfig":
        """
        Check the config can be registered.

        Args:
            max_references: Upper bound on the reference list length
            max_fee: Largest accepted fee in pips
            strict: Also require the elevated tier to sit at or above the base tier

        Returns:
            A copy with the aggregation mode resolved to AggregationMode

        Raises:
            ConfigurationError: On the first violated rule
        """
        if not self.references:
            raise ConfigurationError("Reference list must not be empty")
        if len(self.references) > max_references:
            raise ConfigurationError(
                f"Too many reference pools: {len(self.references)} > {max_references}"
            )
        for ref in self.references:
            if not isinstance(ref, ReferencePool) or not ref.pool_id:
                raise ConfigurationError(f"Invalid reference pool: {ref!r}")

        mode = AggregationMode.parse(self.aggregation_mode)

        for name in ("base_fee", "elevated_fee"):
            value = getattr(self, name)
            if not isinstance(value, int) or not 0 <= value <= max_fee:
                raise ConfigurationError(f"{name} must be between 0 and {max_fee}, got: {value!r}")
        for name in ("elevated_threshold_bps", "reject_threshold_bps", "max_reference_move_cap_bps"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative integer, got: {value!r}")

        problems = []
        if self.elevated_fee < self.base_fee:
            problems.append(f"elevated_fee {self.elevated_fee} < base_fee {self.base_fee}")
        if self.reject_threshold_bps < self.elevated_threshold_bps:
            problems.append(
                f"reject_threshold_bps {self.reject_threshold_bps} < "
                f"elevated_threshold_bps {self.elevated_threshold_bps}"
            )
        if problems:
            if strict:
                raise ConfigurationError("; ".join(problems))
            logger.warning(f"Accepting inverted tier ordering: {'; '.join(problems)}")

        if mode is self.aggregation_mode:
            return self
        return PoolConfig(
            references=self.references,
            base_fee=self.base_fee,
            elevated_fee=self.elevated_fee,
            elevated_threshold_bps=self.elevated_threshold_bps,
            reject_threshold_bps=self.reject_threshold_bps,
            max_reference_move_cap_bps=self.max_reference_move_cap_bps,
            aggregation_mode=mode,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "references": [ref.to_dict() for ref in self.references],
            "base_fee": self.base_fee,
            "elevated_fee": self.elevated_fee,
            "elevated_threshold_bps": self.elevated_threshold_bps,
            "reject_threshold_bps": self.reject_threshold_bps,
            "max_reference_move_cap_bps": self.max_reference_move_cap_bps,
            "aggregation_mode": AggregationMode.parse(self.aggregation_mode).name.lower(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoolConfig":
        """
        Build a config from its dictionary form (JSON files, Redis documents).

        Raises:
            ConfigurationError: If required keys are missing or malformed
        """
        try:
            return cls(
                references=tuple(ReferencePool.from_dict(ref) for ref in data["references"]),
                base_fee=int(data["base_fee"]),
                elevated_fee=int(data["elevated_fee"]),
                elevated_threshold_bps=int(data["elevated_threshold_bps"]),
                reject_threshold_bps=int(data["reject_threshold_bps"]),
                max_reference_move_cap_bps=int(data.get("max_reference_move_cap_bps", 0)),
                aggregation_mode=AggregationMode.parse(data.get("aggregation_mode", "maximum")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid pool config: {e}")


@dataclass(frozen=True)
class TradeRequest:
    """
    A pending swap against a protected pool.

    Attributes:
        pool_id: Protected pool identifier
        amount_specified: Signed swap amount in input-token units
        sells_base: True when the base asset (currency0) is sold, i.e. zeroForOne
    """

    pool_id: str
    amount_specified: int
    sells_base: bool


@dataclass(frozen=True)
class AdminCredential:
    """Proof of administrative identity presented at registration."""

    identity: str

    def matches(self, identity: str) -> bool:
        """Case-insensitive comparison; a blank identity never matches."""
        if not self.identity or not identity:
            return False
        return self.identity.lower() == identity.lower()


class FeeTier(str, Enum):
    """Outcome of a trade evaluation."""

    BASE = "base"
    ELEVATED = "elevated"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Decision:
    """
    Outcome of evaluating one trade, published on the decision output channel.

    Attributes:
        pool_id: Protected pool identifier
        tier: Chosen fee tier
        fee: Fee in pips, None when rejected
        impact_bps: Estimated swap impact
        explained_bps: Movement explained by aligned references
        unexplained_bps: impact_bps - explained_bps, floored at 0
        reference_sqrt_prices: Reference prices read for the evaluation
        reason: Rejection reason, None for allowed trades
        timestamp: Evaluation time (UTC)
    """

    pool_id: str
    tier: FeeTier
    fee: Optional[int]
    impact_bps: int
    explained_bps: int
    unexplained_bps: int
    reference_sqrt_prices: Tuple[int, ...] = ()
    reason: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def allowed(self) -> bool:
        return self.tier is not FeeTier.REJECTED

    @property
    def override_fee(self) -> Optional[int]:
        """Fee with the v4 override flag set, as returned from beforeSwap."""
        if self.fee is None:
            return None
        return self.fee | OVERRIDE_FEE_FLAG

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pool_id": self.pool_id,
            "tier": self.tier.value,
            "fee": self.fee,
            "override_fee": self.override_fee,
            "impact_bps": self.impact_bps,
            "explained_bps": self.explained_bps,
            "unexplained_bps": self.unexplained_bps,
            # sqrt prices exceed 64 bits, keep them as strings for JSON consumers
            "reference_sqrt_prices": [str(p) for p in self.reference_sqrt_prices],
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }
