"""
Configuration management for impact-guard.

Use get_config() to access all configuration settings.

Example:
    from impact_guard.config import get_config

    config = get_config()

    rpc_url = config.chains.RPC_URL
    max_refs = config.engine.MAX_REFERENCES
    redis_kwargs = config.database.get_redis_connection_kwargs()
    nats_url = config.nats.get_nats_url()
"""

from .base import BaseConfig, ConfigError
from .chains import ChainConfig
from .database import DatabaseConfig
from .engine import EngineConfig
from .manager import ConfigManager, get_config, reload_config
from .nats_config import NatsConfig

__all__ = [
    "BaseConfig",
    "ConfigError",
    "ChainConfig",
    "DatabaseConfig",
    "EngineConfig",
    "NatsConfig",
    "ConfigManager",
    "get_config",
    "reload_config",
]
