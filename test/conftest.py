"""
Fixtures for end-to-end scenarios: a simulated market of one protected pool
and three reference pools behind an in-memory reader and store.
"""

import pytest

from impact_guard.config import EngineConfig
from impact_guard.engine import (
    AdminCredential,
    AggregationMode,
    DecisionEngine,
    PoolConfig,
    Q96,
    ReferencePool,
)
from impact_guard.events import DecisionLog, LoggingDecisionSink
from impact_guard.readers import InMemoryPoolStateReader
from impact_guard.storage import MemoryStateStore

ADMIN = "0x000000000000000000000000000000000000a11c"
ONE = 10**18


@pytest.fixture
def protected_id():
    return "0x" + "10" * 32


@pytest.fixture
def reference_ids():
    return ["0x" + "21" * 32, "0x" + "22" * 32, "0x" + "23" * 32]


@pytest.fixture
def market(protected_id, reference_ids):
    reader = InMemoryPoolStateReader()
    reader.set_state(protected_id, Q96, 10 * ONE)
    for multiple, ref in zip((2, 3, 5), reference_ids):
        reader.set_state(ref, multiple * Q96, 1000 * ONE)
    return reader


@pytest.fixture
def decision_log():
    return DecisionLog(max_entries=50)


@pytest.fixture
def engine(market, decision_log):
    config = EngineConfig(MAX_REFERENCES=5, STRICT_POOL_CONFIG=True)
    return DecisionEngine(
        market,
        MemoryStateStore(),
        admin=ADMIN,
        sinks=[decision_log, LoggingDecisionSink()],
        engine_config=config,
    )


@pytest.fixture
def register(engine, protected_id, reference_ids):
    """Register the protected pool; keyword arguments override PoolConfig fields."""

    def _register(count=1, **overrides):
        params = dict(
            references=tuple(ReferencePool(ref) for ref in reference_ids[:count]),
            base_fee=3000,
            elevated_fee=10000,
            elevated_threshold_bps=200,
            reject_threshold_bps=1000,
            aggregation_mode=AggregationMode.MAXIMUM,
        )
        params.update(overrides)
        return engine.register_pool(AdminCredential(ADMIN), protected_id, PoolConfig(**params))

    return _register
