"""
Environment-driven configuration primitives for impact-guard.

Every section is a dataclass whose field defaults are read from the process
environment (and a local .env file) when the module is imported.
"""

import os
import re
import logging
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, Optional, Tuple
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

ENVIRONMENTS = ("local", "dev", "staging", "production")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class ConfigError(Exception):
    """Raised when an environment value or a config section is invalid."""
    pass


@dataclass
class BaseConfig:
    """Fields and environment helpers shared by every config section."""

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "local")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Field names whose values are masked by to_dict()
    SECRET_FIELDS: ClassVar[Tuple[str, ...]] = ()

    def __post_init__(self):
        self._setup_logging()
        self._validate_config()

    def _setup_logging(self):
        level = logging.getLevelName(self.LOG_LEVEL.upper())
        if not isinstance(level, int):
            raise ConfigError(f"Invalid log level: {self.LOG_LEVEL}")
        logging.basicConfig(level=level, format=LOG_FORMAT)

    def _validate_config(self):
        """Check field values; sections extend this with their own rules."""
        if self.ENVIRONMENT not in ENVIRONMENTS:
            raise ConfigError(
                f"Invalid environment: {self.ENVIRONMENT} (expected one of {', '.join(ENVIRONMENTS)})"
            )

    @staticmethod
    def get_env(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
        """
        Read an environment variable.

        Raises:
            ConfigError: If the variable is required and unset
        """
        value = os.getenv(key, default)
        if required and value is None:
            raise ConfigError(f"Required environment variable '{key}' is not set")
        return value

    @staticmethod
    def get_env_int(
        key: str,
        default: Optional[int] = None,
        required: bool = False,
        min_value: Optional[int] = None,
    ) -> int:
        """Read an integer environment variable, optionally bounded below."""
        value = BaseConfig.get_env(key, None if default is None else str(default), required)
        try:
            number = int(value)
        except (ValueError, TypeError):
            raise ConfigError(f"Environment variable '{key}' must be an integer, got: {value}")
        if min_value is not None and number < min_value:
            raise ConfigError(f"Environment variable '{key}' must be >= {min_value}, got: {number}")
        return number

    @staticmethod
    def get_env_bool(key: str, default: bool = False) -> bool:
        value = BaseConfig.get_env(key)
        if value is None:
            return default
        return value.strip().lower() in ("true", "1", "yes", "on")

    @staticmethod
    def get_env_address(key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Read a 20-byte hex address (contract or admin identity).

        Blank values read as the default.

        Raises:
            ConfigError: If the value is not 0x followed by 40 hex digits
        """
        value = (BaseConfig.get_env(key) or "").strip() or default
        if value is not None and not _ADDRESS_RE.match(value):
            raise ConfigError(f"Environment variable '{key}' must be a 0x-prefixed address, got: {value}")
        return value

    def to_dict(self, mask_secrets: bool = True) -> Dict[str, Any]:
        """Field values by name, secrets replaced by '***' when set."""
        data = {}
        for field in fields(self):
            name, value = field.name, getattr(self, field.name)
            if mask_secrets and name in self.SECRET_FIELDS and value:
                value = "***"
            data[name] = value
        return data
