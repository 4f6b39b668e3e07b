"""Orchestration engine for Chorus multi-agent conversations.

This package provides the turn-taking loop, the speaker selection
policies it delegates to, and the context compactor callers can apply to
keep transcripts bounded.

Main components:
- GroupChat: Turn scheduler that drives a conversation to completion
- SpeakerSelector: Policies choosing who speaks next
- ContextCompactor: Keeps transcripts within message and token budgets
- ChatEvent: Events emitted while a run progresses
"""

from .context import (
    CompactionConfig,
    CompactionResult,
    CompactionStats,
    CompactionStrategy,
    ContextCompactor,
    ContextSummarizer,
    Summarizer,
    create_compactor,
    estimate_tokens,
)
from .engine import GroupChat, create_group_chat
from .events import ChatEvent, ChatState, EventType
from .selectors import (
    ConstrainedSelector,
    ManualSelector,
    RandomSelector,
    RoundRobinSelector,
    SpeakerSelector,
    create_selector,
)

__all__ = [
    # Turn scheduler
    "GroupChat",
    "create_group_chat",
    # Events
    "ChatEvent",
    "ChatState",
    "EventType",
    # Speaker selection
    "SpeakerSelector",
    "RoundRobinSelector",
    "RandomSelector",
    "ManualSelector",
    "ConstrainedSelector",
    "create_selector",
    # Context compaction
    "CompactionConfig",
    "CompactionResult",
    "CompactionStats",
    "CompactionStrategy",
    "ContextCompactor",
    "ContextSummarizer",
    "Summarizer",
    "create_compactor",
    "estimate_tokens",
]
