"""
NATS configuration for the decision output channel.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from .base import BaseConfig

# Server URL per deployment environment, used when NATS_URL is unset
DEFAULT_NATS_URLS: Dict[str, str] = {
    "local": "nats://localhost:4222",
    "dev": "nats://nats:4222",
    "staging": "nats://nats:4222",
    "production": "nats://nats-server:4222",
}


@dataclass
class NatsConfig(BaseConfig):
    """Decision publishing over NATS/JetStream."""

    NATS_ENABLED: bool = BaseConfig.get_env_bool("NATS_ENABLED", False)
    NATS_URL: Optional[str] = BaseConfig.get_env("NATS_URL") or None

    # JetStream stream holding both decision subjects
    STREAM_NAME: str = BaseConfig.get_env("NATS_STREAM_NAME", "IMPACT_GUARD_DECISIONS")
    SUBJECT_PREFIX: str = BaseConfig.get_env("NATS_SUBJECT_PREFIX", "impact_guard")

    def get_nats_url(self, environment: Optional[str] = None) -> str:
        """NATS_URL if set, else the default server of the environment."""
        if self.NATS_URL:
            return self.NATS_URL
        env = environment or self.ENVIRONMENT
        return DEFAULT_NATS_URLS.get(env, DEFAULT_NATS_URLS["local"])

    @property
    def fee_subject(self) -> str:
        """Subject for allowed trades (DynamicFeeApplied)."""
        return f"{self.SUBJECT_PREFIX}.fees.applied"

    @property
    def circuit_breaker_subject(self) -> str:
        """Subject for rejected trades (CircuitBreakerHit)."""
        return f"{self.SUBJECT_PREFIX}.circuit_breaker.hit"

    @property
    def decision_subjects(self) -> List[str]:
        return [self.fee_subject, self.circuit_breaker_subject]
