"""Centralized exception hierarchy for Chorus.

This module defines all custom exceptions used throughout Chorus,
organized in a hierarchy for easy handling and specificity.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional


class ChorusError(Exception):
    """Base exception for all Chorus errors.

    Attributes:
        message: Human-readable error message.
        code: Optional error code for programmatic handling.
        details: Optional dictionary with additional error context.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(ChorusError):
    """Raised when there's a configuration problem."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid configuration for '{field}': {reason}",
            code="INVALID_CONFIG",
            details={"field": field, "value": str(value)[:100], "reason": reason},
        )


# =============================================================================
# Message Errors
# =============================================================================

class MessageError(ChorusError):
    """Base exception for malformed transcript entries."""
    pass


class InvalidMessageError(MessageError):
    """Raised when a message violates the transcript invariants."""

    def __init__(self, role: str, reason: str):
        super().__init__(
            message=f"Invalid {role} message: {reason}",
            code="INVALID_MESSAGE",
            details={"role": role, "reason": reason},
        )


# =============================================================================
# Speaker Selection Errors
# =============================================================================

class SelectionError(ChorusError):
    """Base exception for speaker selection failures."""
    pass


class EmptyRosterError(SelectionError):
    """Raised when a selector is asked to choose from no agents."""

    def __init__(self):
        super().__init__(
            message="No agents available for selection",
            code="EMPTY_ROSTER",
        )


class UnknownAgentError(SelectionError):
    """Raised when a manual override names an agent not in the roster."""

    def __init__(self, agent_name: str, available: Iterable[str] = ()):
        available = list(available)
        super().__init__(
            message=f"Agent '{agent_name}' not found in available agents",
            code="UNKNOWN_AGENT",
            details={"agent": agent_name, "available": available},
        )
        self.agent_name = agent_name


class NoAllowedAgentsError(SelectionError):
    """Raised when a constrained selector's allow-list matches nobody."""

    def __init__(self, allowed: Iterable[str]):
        allowed = sorted(allowed)
        super().__init__(
            message=(
                "No allowed agents found in the current agent list. "
                f"Allowed: {', '.join(allowed)}"
            ),
            code="NO_ALLOWED_AGENTS",
            details={"allowed": allowed},
        )


# =============================================================================
# Orchestration Errors
# =============================================================================

class OrchestrationError(ChorusError):
    """Base exception for orchestration-related errors."""
    pass


class InsufficientAgentsError(OrchestrationError):
    """Raised when a group chat is built with fewer than two agents."""

    def __init__(self, count: int, minimum: int = 2):
        super().__init__(
            message=f"GroupChat requires at least {minimum} agents, got {count}",
            code="INSUFFICIENT_AGENTS",
            details={"count": count, "minimum": minimum},
        )


class DuplicateAgentError(OrchestrationError):
    """Raised when two agents in one roster share a name."""

    def __init__(self, agent_name: str):
        super().__init__(
            message=f"Agent name '{agent_name}' appears more than once in the roster",
            code="DUPLICATE_AGENT",
            details={"agent": agent_name},
        )


# =============================================================================
# Provider Errors
# =============================================================================

class ProviderError(ChorusError):
    """Raised by agent implementations when reply generation fails.

    The orchestrator never interprets, retries or wraps these; they reach
    the caller of ``GroupChat.run`` unchanged.
    """

    def __init__(
        self,
        message: str,
        agent: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        if agent:
            details["agent"] = agent
        super().__init__(message, "PROVIDER_ERROR", details)
        self.agent = agent
