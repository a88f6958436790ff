"""
Exception taxonomy for the decision engine.

Configuration problems surface at registration time, unregistered pools and
circuit-breaker rejections at evaluation time. Collaborator failures (reads,
storage) are defined next to their collaborators and propagate unchanged.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import Decision


class ImpactGuardError(Exception):
    """Base exception for impact-guard."""
    pass


class ConfigurationError(ImpactGuardError):
    """Raised when a candidate pool config fails validation."""
    pass


class UnauthorizedError(ConfigurationError):
    """Raised when registration is attempted without the admin credential."""
    pass


class NotRegisteredError(ImpactGuardError):
    """Raised when a trade arrives for a pool with no config."""

    def __init__(self, pool_id: str):
        super().__init__(f"Pool {pool_id} is not registered")
        self.pool_id = pool_id


class TrackingStateError(ImpactGuardError):
    """Raised when the tracked prices do not line up with the configured references."""

    def __init__(self, pool_id: str, expected: int, found: int):
        super().__init__(
            f"Pool {pool_id} tracks {found} reference prices for {expected} references"
        )
        self.pool_id = pool_id
        self.expected = expected
        self.found = found


class CircuitBreakerTriggered(ImpactGuardError):
    """
    Raised when a trade's unexplained impact reaches the reject threshold.

    This is the protective outcome, not a fault: the trade must not settle and
    no tracking state has been touched.
    """

    def __init__(self, pool_id: str, unexplained_bps: int, decision: Optional["Decision"] = None):
        super().__init__(
            f"Circuit breaker triggered for pool {pool_id}: "
            f"unexplained impact {unexplained_bps} bps"
        )
        self.pool_id = pool_id
        self.unexplained_bps = unexplained_bps
        self.decision = decision
