"""
NATS messaging for the decision output channel.
"""

from .client import NatsClient, NatsClientJS
from .json_helpers import dumps, loads
from .publisher import NatsDecisionPublisher

__all__ = ["NatsClient", "NatsClientJS", "NatsDecisionPublisher", "dumps", "loads"]
