"""
Decision output channel: where fee and circuit-breaker decisions go.
"""

from .nats import NatsDecisionPublisher
from .sinks import DecisionLog, DecisionSink, LoggingDecisionSink

__all__ = [
    "DecisionSink",
    "DecisionLog",
    "LoggingDecisionSink",
    "NatsDecisionPublisher",
]
