"""Chorus: turn-taking and context compaction for multi-agent conversations."""

__version__ = "0.1.0"

from chorus.agents import Agent, CancellationToken, FunctionAgent
from chorus.errors import (
    ChorusError,
    DuplicateAgentError,
    EmptyRosterError,
    InsufficientAgentsError,
    NoAllowedAgentsError,
    ProviderError,
    UnknownAgentError,
)
from chorus.models import FunctionCall, Message, MessageRole, ToolCall
from chorus.orchestrator import (
    ChatEvent,
    ChatState,
    CompactionConfig,
    CompactionResult,
    CompactionStrategy,
    ConstrainedSelector,
    ContextCompactor,
    ContextSummarizer,
    EventType,
    GroupChat,
    ManualSelector,
    RandomSelector,
    RoundRobinSelector,
    SpeakerSelector,
    create_compactor,
    create_group_chat,
    create_selector,
)

__all__ = [
    "__version__",
    "Agent",
    "CancellationToken",
    "ChatEvent",
    "ChatState",
    "ChorusError",
    "CompactionConfig",
    "CompactionResult",
    "CompactionStrategy",
    "ConstrainedSelector",
    "ContextCompactor",
    "ContextSummarizer",
    "DuplicateAgentError",
    "EmptyRosterError",
    "EventType",
    "FunctionAgent",
    "FunctionCall",
    "GroupChat",
    "InsufficientAgentsError",
    "ManualSelector",
    "Message",
    "MessageRole",
    "NoAllowedAgentsError",
    "ProviderError",
    "RandomSelector",
    "RoundRobinSelector",
    "SpeakerSelector",
    "ToolCall",
    "UnknownAgentError",
    "create_compactor",
    "create_group_chat",
    "create_selector",
]
