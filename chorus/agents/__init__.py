"""Agent capability consumed by the group chat."""

from .base import Agent, FunctionAgent
from .cancellation import CancellationToken

__all__ = [
    "Agent",
    "CancellationToken",
    "FunctionAgent",
]
