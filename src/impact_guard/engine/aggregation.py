"""
Combining reference pool movements into a single explained movement.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Sequence, Union

from .alignment import is_aligned
from .errors import ConfigurationError
from .price_math import change_bps


class AggregationMode(IntEnum):
    """
    How aligned reference movements are combined.

    MAXIMUM credits the largest aligned move, which an attacker can inflate by
    nudging a single correlated reference. MEDIAN requires moving a majority
    of the references.
    """

    MAXIMUM = 0
    MEDIAN = 1

    @classmethod
    def parse(cls, value: Union["AggregationMode", int, str]) -> "AggregationMode":
        """
        Resolve a mode from its enum member, integer code or name.

        Raises:
            ConfigurationError: If the value names no known mode
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "MAX":
                name = "MAXIMUM"
            try:
                return cls[name]
            except KeyError:
                raise ConfigurationError(f"Unknown aggregation mode: {value!r}")
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                raise ConfigurationError(f"Unknown aggregation mode: {value!r}")
        raise ConfigurationError(f"Unknown aggregation mode: {value!r}")


@dataclass(frozen=True)
class ReferenceObservation:
    """
    One reference pool as seen by a single evaluation.

    Attributes:
        pool_id: Reference pool identifier
        inverted: Reference quotes the protected pair the other way round
        last_sqrt_price_x96: Tracked price as of the previous trade
        current_sqrt_price_x96: Freshly read price
    """

    pool_id: str
    inverted: bool
    last_sqrt_price_x96: int
    current_sqrt_price_x96: int

    def is_aligned(self, sells_base: bool) -> bool:
        return is_aligned(
            self.last_sqrt_price_x96,
            self.current_sqrt_price_x96,
            sells_base,
            self.inverted,
        )

    @property
    def change_bps(self) -> int:
        return change_bps(self.last_sqrt_price_x96, self.current_sqrt_price_x96)


def aligned_movements(
    observations: Sequence[ReferenceObservation],
    sells_base: bool,
    max_move_cap_bps: int = 0,
) -> List[int]:
    """
    Capped movements of every reference aligned with the trade, in order.

    Args:
        observations: Reference observations in config order
        sells_base: Trade sells the protected base asset
        max_move_cap_bps: Per-reference contribution cap, 0 disables it
    """
    moves = []
    for observation in observations:
        if not observation.is_aligned(sells_base):
            continue
        move = observation.change_bps
        if max_move_cap_bps and move > max_move_cap_bps:
            move = max_move_cap_bps
        moves.append(move)
    return moves


def median(values: Sequence[int]) -> int:
    """Integer median; even-sized inputs average the middle pair, rounding down."""
    ordered = sorted(values)
    count = len(ordered)
    mid = count // 2
    if count % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) // 2


def aggregate_explained_movement(
    observations: Sequence[ReferenceObservation],
    sells_base: bool,
    max_move_cap_bps: int = 0,
    mode: AggregationMode = AggregationMode.MAXIMUM,
) -> int:
    """
    Movement, in bps, that the references explain for this trade.

    Returns:
        0 when no reference is aligned, otherwise the maximum or median of
        the aligned, capped movements.
    """
    moves = aligned_movements(observations, sells_base, max_move_cap_bps)
    if not moves:
        return 0
    if AggregationMode.parse(mode) is AggregationMode.MEDIAN:
        return median(moves)
    return max(moves)
