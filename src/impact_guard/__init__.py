"""
impact-guard: manipulation detection and dynamic fees for AMM pools.

Every trade against a protected pool is compared with the movement of
independent reference pools. Price impact that the references cannot
explain earns an elevated fee, or trips the circuit breaker.

Example:
    from impact_guard import DecisionEngine, AdminCredential, PoolConfig, ReferencePool

    engine = DecisionEngine(reader, store, admin="0xAdmin")
    engine.register_pool(AdminCredential("0xAdmin"), pool_id, config)
    decision = engine.before_swap(request)
"""

from .engine import (
    AdminCredential,
    AggregationMode,
    CircuitBreakerTriggered,
    ConfigurationError,
    Decision,
    DecisionEngine,
    FeeTier,
    ImpactGuardError,
    NotRegisteredError,
    PoolConfig,
    ReferencePool,
    TradeRequest,
    UnauthorizedError,
)

__version__ = "0.1.0"

__all__ = [
    "AdminCredential",
    "AggregationMode",
    "CircuitBreakerTriggered",
    "ConfigurationError",
    "Decision",
    "DecisionEngine",
    "FeeTier",
    "ImpactGuardError",
    "NotRegisteredError",
    "PoolConfig",
    "ReferencePool",
    "TradeRequest",
    "UnauthorizedError",
]
