"""
Configuration manager for impact-guard.

Builds every configuration section for one environment, so the engine,
readers, stores and publishers share one view of it.
"""

import logging
from typing import Any, Dict, Optional

from .base import BaseConfig, ConfigError
from .chains import ChainConfig
from .database import DatabaseConfig
from .engine import EngineConfig
from .nats_config import NatsConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """All configuration sections of one process."""

    def __init__(self, environment: Optional[str] = None):
        """
        Build every section.

        Args:
            environment: Override ENVIRONMENT (local, dev, staging, production)

        Raises:
            ConfigError: If any section fails validation
        """
        overrides = {"ENVIRONMENT": environment} if environment else {}
        try:
            self._engine = EngineConfig(**overrides)
            self._chains = ChainConfig(**overrides)
            self._database = DatabaseConfig(**overrides)
            self._nats = NatsConfig(**overrides)
        except ConfigError:
            raise
        except Exception as e:
            logger.error(f"Failed to initialize configuration: {e}")
            raise ConfigError(f"Configuration initialization failed: {e}") from e

        logger.info(f"Configuration initialized for environment: {self.environment}")

    @property
    def environment(self) -> str:
        return self._engine.ENVIRONMENT

    @property
    def sections(self) -> Dict[str, BaseConfig]:
        return {
            "engine": self._engine,
            "chains": self._chains,
            "database": self._database,
            "nats": self._nats,
        }

    @property
    def engine(self) -> EngineConfig:
        return self._engine

    @property
    def chains(self) -> ChainConfig:
        return self._chains

    @property
    def database(self) -> DatabaseConfig:
        return self._database

    @property
    def nats(self) -> NatsConfig:
        return self._nats

    def get_nats_publishing_config(self) -> Dict[str, Any]:
        """Keyword settings for NatsDecisionPublisher."""
        return {
            "enabled": self._nats.NATS_ENABLED,
            "url": self._nats.get_nats_url(self.environment),
            "stream_name": self._nats.STREAM_NAME,
            "fee_subject": self._nats.fee_subject,
            "circuit_breaker_subject": self._nats.circuit_breaker_subject,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Every section by name, secrets masked."""
        dumped: Dict[str, Any] = {"environment": self.environment}
        for name, section in self.sections.items():
            dumped[name] = section.to_dict()
        return dumped


_config_manager: Optional[ConfigManager] = None


def get_config(environment: Optional[str] = None) -> ConfigManager:
    """
    Get the process-wide configuration manager, building it on first use.

    Args:
        environment: Override the environment on first initialization
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(environment)
    return _config_manager


def reload_config(environment: Optional[str] = None) -> ConfigManager:
    """Discard the cached configuration and build a new one."""
    global _config_manager
    _config_manager = ConfigManager(environment)
    return _config_manager
