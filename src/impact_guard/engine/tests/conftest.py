"""
Shared fixtures for decision engine tests.
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
from impact_guard.events import DecisionLog
from impact_guard.readers import InMemoryPoolStateReader
from impact_guard.storage import MemoryStateStore

PROTECTED = "0x244a813e4231897b688102fb2d5d00286ac0488eaa0fc02e4dd414c198413abc"
REFERENCE = "0x3917e2df25f138fac834798f50946127f49d2991edfcbd893bf1df3c4a6f366b"
REFERENCE_2 = "0x" + "22" * 32
REFERENCE_3 = "0x" + "33" * 32
ADMIN = "0x00000000000000000000000000000000000000Ad"

ONE = 10**18


def make_config(references=(REFERENCE,), **overrides) -> PoolConfig:
    params = dict(
        references=tuple(ReferencePool(r) if isinstance(r, str) else r for r in references),
        base_fee=3000,
        elevated_fee=10000,
        elevated_threshold_bps=200,
        reject_threshold_bps=1000,
        max_reference_move_cap_bps=0,
        aggregation_mode=AggregationMode.MAXIMUM,
    )
    params.update(overrides)
    return PoolConfig(**params)


@pytest.fixture
def engine_config():
    return EngineConfig(MAX_REFERENCES=5, STRICT_POOL_CONFIG=True, DECISION_LOG_SIZE=50)


@pytest.fixture
def reader():
    reader = InMemoryPoolStateReader()
    reader.set_state(PROTECTED, Q96, 10 * ONE)
    reader.set_state(REFERENCE, 2 * Q96, 1000 * ONE)
    reader.set_state(REFERENCE_2, 3 * Q96, 1000 * ONE)
    reader.set_state(REFERENCE_3, 5 * Q96, 1000 * ONE)
    return reader


@pytest.fixture
def store():
    return MemoryStateStore()


@pytest.fixture
def decision_log():
    return DecisionLog(max_entries=50)


@pytest.fixture
def engine(reader, store, decision_log, engine_config):
    return DecisionEngine(reader, store, admin=ADMIN, sinks=[decision_log], engine_config=engine_config)


@pytest.fixture
def admin():
    return AdminCredential(ADMIN)
