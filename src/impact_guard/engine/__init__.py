"""
Decision engine: price-change math, direction alignment, reference
aggregation, swap impact estimation and fee tier selection.
"""

from .aggregation import (
    AggregationMode,
    ReferenceObservation,
    aggregate_explained_movement,
    aligned_movements,
)
from .alignment import is_aligned
from .errors import (
    CircuitBreakerTriggered,
    ConfigurationError,
    ImpactGuardError,
    NotRegisteredError,
    TrackingStateError,
    UnauthorizedError,
)
from .models import (
    OVERRIDE_FEE_FLAG,
    AdminCredential,
    Decision,
    FeeTier,
    PoolConfig,
    ReferencePool,
    TradeRequest,
)
from .price_math import MAX_BPS, Q96, change_bps, estimate_swap_impact_bps, sqrt_price_to_price
from .decision import DecisionEngine

__all__ = [
    "AggregationMode",
    "ReferenceObservation",
    "aggregate_explained_movement",
    "aligned_movements",
    "is_aligned",
    "CircuitBreakerTriggered",
    "ConfigurationError",
    "ImpactGuardError",
    "NotRegisteredError",
    "TrackingStateError",
    "UnauthorizedError",
    "OVERRIDE_FEE_FLAG",
    "AdminCredential",
    "Decision",
    "FeeTier",
    "PoolConfig",
    "ReferencePool",
    "TradeRequest",
    "MAX_BPS",
    "Q96",
    "change_bps",
    "estimate_swap_impact_bps",
    "sqrt_price_to_price",
    "DecisionEngine",
]
