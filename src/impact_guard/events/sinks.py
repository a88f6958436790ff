"""
Decision output channel.

The engine hands every Decision to its sinks: the fee and unexplained impact
for allowed trades, the rejection reason and unexplained impact for circuit
breaker hits.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, List, Optional

from ..engine.models import Decision, FeeTier

logger = logging.getLogger(__name__)


class DecisionSink(ABC):
    """Receives decisions synchronously, inside the trade evaluation."""

    @abstractmethod
    def emit(self, decision: Decision) -> None:
        pass


class LoggingDecisionSink(DecisionSink):
    """Writes decisions to the standard logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def emit(self, decision: Decision) -> None:
        if decision.tier is FeeTier.REJECTED:
            self.logger.warning(
                f"CircuitBreakerHit pool={decision.pool_id} "
                f"unexplained={decision.unexplained_bps}bps reason={decision.reason}"
            )
        else:
            self.logger.info(
                f"DynamicFeeApplied pool={decision.pool_id} tier={decision.tier.value} "
                f"fee={decision.fee} unexplained={decision.unexplained_bps}bps"
            )


class DecisionLog(DecisionSink):
    """Bounded in-memory feed of recent decisions, newest first."""

    def __init__(self, max_entries: int = 50):
        self._entries: Deque[Decision] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, engine_config=None) -> "DecisionLog":
        """Log sized by EngineConfig.DECISION_LOG_SIZE."""
        if engine_config is None:
            from ..config import get_config
            engine_config = get_config().engine
        return cls(max_entries=engine_config.DECISION_LOG_SIZE)

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen

    def emit(self, decision: Decision) -> None:
        with self._lock:
            self._entries.appendleft(decision)

    def recent(self, pool_id: Optional[str] = None, limit: Optional[int] = None) -> List[Decision]:
        with self._lock:
            entries = [d for d in self._entries if pool_id is None or d.pool_id == pool_id]
        return entries[:limit] if limit is not None else entries

    def rejections(self, pool_id: Optional[str] = None) -> List[Decision]:
        return [d for d in self.recent(pool_id) if d.tier is FeeTier.REJECTED]

    def __len__(self) -> int:
        return len(self._entries)
