"""
NATS publisher for engine decisions.

Decisions are emitted synchronously during trade evaluation, which must not
block on the network, so the publisher buffers them and a host task flushes
the buffer to NATS/JetStream.
"""

import logging
import threading
from typing import Dict, List, Optional

from ...engine.models import Decision, FeeTier
from ..sinks import DecisionSink
from .client import NatsClientJS

logger = logging.getLogger(__name__)


class NatsDecisionPublisher(DecisionSink):
    """
    Publisher for fee and circuit-breaker decisions to NATS/JetStream.

    Allowed trades go to the fee subject (DynamicFeeApplied), rejections to
    the circuit-breaker subject (CircuitBreakerHit).
    """

    def __init__(
        self,
        url: str = "nats://localhost:4222",
        stream_name: str = "IMPACT_GUARD_DECISIONS",
        fee_subject: str = "impact_guard.fees.applied",
        circuit_breaker_subject: str = "impact_guard.circuit_breaker.hit",
        client: Optional[NatsClientJS] = None,
    ):
        """
        Initialize the decision publisher.

        Args:
            url: NATS server URL
            stream_name: JetStream stream holding the decision subjects
            fee_subject: Subject for allowed trades
            circuit_breaker_subject: Subject for rejected trades
            client: Pre-built client (mainly for tests)
        """
        self.nats_client = client or NatsClientJS(url)
        self.stream_name = stream_name
        self.fee_subject = fee_subject
        self.circuit_breaker_subject = circuit_breaker_subject
        self._pending: List[Decision] = []
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config_manager=None) -> "NatsDecisionPublisher":
        if config_manager is None:
            from ...config import get_config
            config_manager = get_config()
        publishing = config_manager.get_nats_publishing_config()
        return cls(
            url=publishing["url"],
            stream_name=publishing["stream_name"],
            fee_subject=publishing["fee_subject"],
            circuit_breaker_subject=publishing["circuit_breaker_subject"],
        )

    @property
    def subjects(self) -> List[str]:
        return [self.fee_subject, self.circuit_breaker_subject]

    async def aconnect(self):
        """Connect to NATS and setup JetStream"""
        await self.nats_client.aconnect()
        await self.nats_client.aensure_stream(self.stream_name, self.subjects)
        logger.info("NatsDecisionPublisher connected and stream registered")

    async def aclose(self):
        """Close NATS connection"""
        await self.nats_client.aclose()
        logger.info("NatsDecisionPublisher connection closed")

    def emit(self, decision: Decision) -> None:
        with self._lock:
            self._pending.append(decision)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def subject_for(self, decision: Decision) -> str:
        if decision.tier is FeeTier.REJECTED:
            return self.circuit_breaker_subject
        return self.fee_subject

    def message_id(self, decision: Decision) -> str:
        """Deduplication id: one message per pool and evaluation time."""
        return f"{decision.pool_id}:{decision.timestamp.isoformat()}"

    def build_message(self, decision: Decision) -> Dict:
        event = "circuit_breaker_hit" if decision.tier is FeeTier.REJECTED else "dynamic_fee_applied"
        return {"type": event, "data": decision.to_dict()}

    async def apublish_pending(self) -> int:
        """
        Publish every buffered decision.

        Must run on the event loop the client was connected in. Without a
        connection nothing is sent and the buffer is kept. Decisions that
        fail to publish are put back at the head of the buffer and the error
        is re-raised.

        Returns:
            Number of decisions published
        """
        if not self.nats_client.is_connected:
            if self.pending_count:
                logger.warning(f"Not connected to NATS, keeping {self.pending_count} decisions buffered")
            return 0

        with self._lock:
            batch, self._pending = self._pending, []

        published = 0
        try:
            for decision in batch:
                await self.nats_client.apublish(
                    self.subject_for(decision),
                    self.build_message(decision),
                    msg_id=self.message_id(decision),
                )
                published += 1
        except Exception:
            with self._lock:
                self._pending = batch[published:] + self._pending
            logger.error(f"Published {published}/{len(batch)} decisions before failure")
            raise

        if published:
            logger.info(f"Published {published} decisions to NATS")
        return published
