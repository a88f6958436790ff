"""
Decision engine configuration for impact-guard.
"""

from dataclasses import dataclass
from typing import Optional

from .base import BaseConfig, ConfigError


@dataclass
class EngineConfig(BaseConfig):
    """Limits and defaults applied by the decision engine."""

    # Reference pools per protected pool
    MAX_REFERENCES: int = BaseConfig.get_env_int("MAX_REFERENCES", 5, min_value=1)

    # Reject configs whose elevated fee/threshold sits below the base tier
    STRICT_POOL_CONFIG: bool = BaseConfig.get_env_bool("STRICT_POOL_CONFIG", True)

    # Uniswap v4 LPFeeLibrary.MAX_LP_FEE (100% in pips)
    MAX_LP_FEE: int = 1_000_000

    # Entries kept by the in-memory decision log
    DECISION_LOG_SIZE: int = BaseConfig.get_env_int("DECISION_LOG_SIZE", 50)

    # Identity allowed to register pools from the CLI
    ADMIN_IDENTITY: Optional[str] = BaseConfig.get_env_address("ADMIN_IDENTITY")

    def _validate_config(self):
        super()._validate_config()
        if not 1 <= self.MAX_REFERENCES <= 5:
            raise ConfigError(f"MAX_REFERENCES must be between 1 and 5, got: {self.MAX_REFERENCES}")
        if self.DECISION_LOG_SIZE <= 0:
            raise ConfigError(f"DECISION_LOG_SIZE must be positive, got: {self.DECISION_LOG_SIZE}")
