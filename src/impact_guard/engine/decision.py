"""
Decision engine for protected pools.

Invoked twice per trade around settlement:

1. before_swap: read the protected pool and every reference, work out how much
   of the trade's estimated impact the references explain, and pick the base
   fee, the elevated fee, or reject the trade.
2. after_swap: re-read the references and overwrite the tracked prices, so
   the next trade measures reference movement since this one.

The engine keeps no pool state of its own beyond what the StateStore holds.
"""

import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Sequence, Tuple

from ..events.sinks import DecisionSink
from ..readers.base import PoolState, PoolStateReader
from ..storage.base import StateStore
from .aggregation import ReferenceObservation, aggregate_explained_movement
from .errors import CircuitBreakerTriggered, NotRegisteredError, TrackingStateError, UnauthorizedError
from .models import AdminCredential, Decision, FeeTier, PoolConfig, TradeRequest
from .price_math import estimate_swap_impact_bps

if TYPE_CHECKING:
    from ..config.engine import EngineConfig

logger = logging.getLogger(__name__)


class DecisionEngine:
    """
    Manipulation detection and fee selection for protected pools.

    Hosts that may evaluate trades for the same pool concurrently must go
    through trade(), which serializes pre-trade, settlement and post-trade per
    protected pool.
    """

    def __init__(
        self,
        reader: PoolStateReader,
        store: StateStore,
        admin: str,
        sinks: Optional[Sequence[DecisionSink]] = None,
        engine_config: Optional["EngineConfig"] = None,
    ):
        """
        Initialize the engine.

        Args:
            reader: Source of pool prices and liquidity
            store: Owner of pool configs and tracked reference prices
            admin: Identity allowed to register pools
            sinks: Receivers of every decision
            engine_config: EngineConfig limits (defaults to the global config)
        """
        if engine_config is None:
            from ..config import get_config
            engine_config = get_config().engine

        self.reader = reader
        self.store = store
        self.sinks: List[DecisionSink] = list(sinks or [])
        self._admin = admin
        self.max_references = engine_config.MAX_REFERENCES
        self.max_fee = engine_config.MAX_LP_FEE
        self.strict = engine_config.STRICT_POOL_CONFIG

        self._locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    @property
    def admin(self) -> str:
        return self._admin

    # Registration

    def register_pool(self, credential: AdminCredential, pool_id: str, config: PoolConfig) -> PoolConfig:
        """
        Create or replace the config of a protected pool.

        The protected pool and every reference are read before anything is
        written; the config and its tracked prices are then stored together.
        Tracked prices come from that read when the protected pool is already
        initialized, otherwise they start at 0 and on_pool_initialized fills
        them in.

        Raises:
            UnauthorizedError: If the credential is not the admin's
            ConfigurationError: If the config is invalid
            PoolStateReadError: If a pool cannot be read; nothing is stored
        """
        if not isinstance(credential, AdminCredential) or not credential.matches(self._admin):
            raise UnauthorizedError(f"Caller is not authorized to register pool {pool_id}")

        config = config.validate(
            max_references=self.max_references,
            max_fee=self.max_fee,
            strict=self.strict,
        )
        states = self.reader.read_many([pool_id, *config.reference_ids])
        if states[pool_id].is_initialized:
            prices = [states[ref.pool_id].sqrt_price_x96 for ref in config.references]
            logger.info(f"Registered pool {pool_id} with {len(config.references)} references")
        else:
            prices = [0] * len(config.references)
            logger.info(
                f"Registered pool {pool_id} with {len(config.references)} references; "
                f"tracking deferred until the pool is initialized"
            )
        self.store.save_registration(pool_id, config, prices)
        return config

    def on_pool_initialized(self, pool_id: str) -> Optional[Tuple[int, ...]]:
        """
        Start reference tracking for a pool registered before initialization.

        Returns:
            The tracked prices, or None if the pool is not registered
        """
        config = self.store.load_config(pool_id)
        if config is None:
            logger.debug(f"Pool {pool_id} initialized without a config, nothing to track")
            return None
        prices = self._snapshot_references(config)
        self.store.save_reference_prices(pool_id, prices)
        logger.info(f"Initialized reference tracking for pool {pool_id}")
        return tuple(prices)

    # Trade hooks

    def before_swap(self, request: TradeRequest) -> Decision:
        """
        Evaluate a pending trade.

        Returns:
            Decision with the base or elevated fee

        Raises:
            NotRegisteredError: If the pool has no config
            CircuitBreakerTriggered: If the unexplained impact reaches the
                reject threshold; nothing has been mutated
        """
        decision = self._evaluate(request, self._require_config(request.pool_id))
        self._emit(decision)

        if decision.tier is FeeTier.REJECTED:
            logger.warning(
                f"Rejected trade on {request.pool_id}: unexplained impact "
                f"{decision.unexplained_bps} bps (impact {decision.impact_bps}, "
                f"explained {decision.explained_bps})"
            )
            raise CircuitBreakerTriggered(request.pool_id, decision.unexplained_bps, decision)

        if decision.tier is FeeTier.ELEVATED:
            logger.info(
                f"Elevated fee {decision.fee} on {request.pool_id}: "
                f"unexplained impact {decision.unexplained_bps} bps"
            )
        else:
            logger.debug(f"Base fee {decision.fee} on {request.pool_id}")
        return decision

    def after_swap(self, pool_id: str) -> Tuple[int, ...]:
        """
        Refresh tracked reference prices once a trade has settled.

        Runs whatever tier the trade paid; only rejected trades skip it, since
        they never settle.

        Returns:
            The newly tracked prices in reference order
        """
        config = self._require_config(pool_id)
        prices = self._snapshot_references(config)
        self.store.save_reference_prices(pool_id, prices)
        logger.debug(f"Tracked reference prices for {pool_id}: {prices}")
        return tuple(prices)

    def quote(self, request: TradeRequest) -> Decision:
        """
        Dry-run evaluation: the decision before_swap would make.

        Never raises for rejections, emits nothing and mutates nothing.
        """
        return self._evaluate(request, self._require_config(request.pool_id))

    @contextmanager
    def trade(self, request: TradeRequest) -> Iterator[Decision]:
        """
        Serialize one trade on its protected pool.

        Yields the pre-trade decision; the body settles the trade. The
        post-trade update runs only if the body completes.

        Example:
            with engine.trade(request) as decision:
                settle(request, fee=decision.fee)
        """
        with self._pool_lock(request.pool_id):
            decision = self.before_swap(request)
            yield decision
            self.after_swap(request.pool_id)

    # Views

    def get_config(self, pool_id: str) -> Optional[PoolConfig]:
        return self.store.load_config(pool_id)

    def tracked_reference_prices(self, pool_id: str) -> Tuple[int, ...]:
        return tuple(self.store.load_reference_prices(pool_id))

    # Internals

    def _require_config(self, pool_id: str) -> PoolConfig:
        config = self.store.load_config(pool_id)
        if config is None or not config.references:
            raise NotRegisteredError(pool_id)
        return config

    def _pool_lock(self, pool_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[pool_id]

    def _snapshot_references(self, config: PoolConfig) -> List[int]:
        states = self.reader.read_many(config.reference_ids)
        return [states[ref.pool_id].sqrt_price_x96 for ref in config.references]

    def _evaluate(self, request: TradeRequest, config: PoolConfig) -> Decision:
        # One snapshot for the protected pool and every reference
        states: Dict[str, PoolState] = self.reader.read_many(
            [request.pool_id, *config.reference_ids]
        )
        protected = states[request.pool_id]
        tracked = self.store.load_reference_prices(request.pool_id)
        if len(tracked) != len(config.references):
            raise TrackingStateError(request.pool_id, len(config.references), len(tracked))

        observations = [
            ReferenceObservation(
                pool_id=ref.pool_id,
                inverted=ref.inverted,
                last_sqrt_price_x96=tracked[index],
                current_sqrt_price_x96=states[ref.pool_id].sqrt_price_x96,
            )
            for index, ref in enumerate(config.references)
        ]

        explained = aggregate_explained_movement(
            observations,
            request.sells_base,
            config.max_reference_move_cap_bps,
            config.aggregation_mode,
        )
        impact = estimate_swap_impact_bps(
            request.amount_specified,
            protected.liquidity,
            protected.sqrt_price_x96,
            request.sells_base,
        )
        unexplained = impact - explained if impact > explained else 0

        if unexplained >= config.reject_threshold_bps:
            tier, fee = FeeTier.REJECTED, None
            reason = (
                f"unexplained impact {unexplained} bps >= "
                f"reject threshold {config.reject_threshold_bps} bps"
            )
        elif unexplained >= config.elevated_threshold_bps:
            tier, fee, reason = FeeTier.ELEVATED, config.elevated_fee, None
        else:
            tier, fee, reason = FeeTier.BASE, config.base_fee, None

        return Decision(
            pool_id=request.pool_id,
            tier=tier,
            fee=fee,
            impact_bps=impact,
            explained_bps=explained,
            unexplained_bps=unexplained,
            reference_sqrt_prices=tuple(o.current_sqrt_price_x96 for o in observations),
            reason=reason,
        )

    def _emit(self, decision: Decision) -> None:
        for sink in self.sinks:
            sink.emit(decision)
