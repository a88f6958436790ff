"""
State store configuration for impact-guard.

Pool configs and tracked reference prices live in Redis under
REDIS_KEY_PREFIX.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Tuple

from .base import BaseConfig


@dataclass
class DatabaseConfig(BaseConfig):
    """Redis connection settings for the pool config and tracking store."""

    REDIS_HOST: str = BaseConfig.get_env("REDIS_HOST", "localhost")
    REDIS_PORT: int = BaseConfig.get_env_int("REDIS_PORT", 6379, min_value=1)
    REDIS_DB: int = BaseConfig.get_env_int("REDIS_DB", 0, min_value=0)
    REDIS_PASSWORD: Optional[str] = BaseConfig.get_env("REDIS_PASSWORD") or None
    REDIS_KEY_PREFIX: str = BaseConfig.get_env("REDIS_KEY_PREFIX", "impact_guard")

    # Seconds; a trade evaluation blocks on the store, so keep this short
    REDIS_SOCKET_TIMEOUT: int = BaseConfig.get_env_int("REDIS_SOCKET_TIMEOUT", 5, min_value=1)

    SECRET_FIELDS: ClassVar[Tuple[str, ...]] = ("REDIS_PASSWORD",)

    @property
    def redis_location(self) -> str:
        """host:port/db, for log lines."""
        return f"{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    def get_redis_connection_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for redis.Redis; responses are decoded to str."""
        kwargs: Dict[str, Any] = {
            "host": self.REDIS_HOST,
            "port": self.REDIS_PORT,
            "db": self.REDIS_DB,
            "decode_responses": True,
            "socket_timeout": self.REDIS_SOCKET_TIMEOUT,
            "socket_connect_timeout": self.REDIS_SOCKET_TIMEOUT,
        }
        password = (self.REDIS_PASSWORD or "").strip()
        if password:
            kwargs["password"] = password
        return kwargs
