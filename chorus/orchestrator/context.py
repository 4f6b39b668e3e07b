"""Context compaction for group chat transcripts.

Keeps a transcript within message-count and approximate-token budgets:
- Truncating the oldest messages while preserving system/tool messages
- Keeping only "important" messages (selective)
- Keeping the first and last messages and compressing the middle (bookend)
- Replacing old history with a generated summary (summarize)

The compactor is not wired into the group chat loop; callers apply it to
whatever they hand to an agent.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from chorus.agents.base import Agent
from chorus.config import Settings
from chorus.config.settings import CompactionConfig, CompactionStrategy
from chorus.models.types import Message, MessageRole

from .prompts import (
    format_bookend_placeholder,
    format_context_summary_prompt,
    format_summary_message,
)

logger = logging.getLogger(__name__)

# Rough characters-per-token ratio used for estimates
CHARS_PER_TOKEN = 4

# Selective compaction keeps messages longer than this many characters
SELECTIVE_MIN_LENGTH = 100

# Selective compaction always keeps this many trailing messages
SELECTIVE_RECENT_COUNT = 10


def estimate_tokens(messages: Sequence[Message]) -> int:
    """Estimate tokens for a set of messages.

    Counts characters of content plus name and divides by four, rounding
    up. Only an order-of-magnitude signal, not a tokenizer.
    """
    total_chars = sum(len(m.content or "") + len(m.name or "") for m in messages)
    return math.ceil(total_chars / CHARS_PER_TOKEN)


class Summarizer(Protocol):
    """Anything that can condense a run of messages into text."""

    async def summarize(self, messages: list[Message]) -> str:
        ...


@dataclass
class CompactionResult:
    """Outcome of a compaction pass."""

    messages: list[Message]
    messages_removed: int = 0
    tokens_saved: int = 0
    summary: Optional[str] = None
    # True when truncation moved tool/function messages behind later turns,
    # which can split a tool call from its result
    tool_messages_relocated: bool = False


@dataclass
class CompactionStats:
    """Size report for a transcript against the current budget."""

    message_count: int
    estimated_tokens: int
    needs_compaction: bool


@dataclass
class _Partition:
    """Truncate-oldest buckets, each holding (position, message) pairs."""

    system: list[tuple[int, Message]] = field(default_factory=list)
    function: list[tuple[int, Message]] = field(default_factory=list)
    other: list[tuple[int, Message]] = field(default_factory=list)


class ContextCompactor:
    """Shrinks transcripts that exceed the configured budget.

    Every method takes and returns fresh lists; the caller's transcript is
    never modified. Each call works on the configuration snapshot taken when
    it started, so ``update_config`` never affects a call in progress.
    """

    def __init__(
        self,
        config: Optional[CompactionConfig] = None,
        summarizer: Optional[Summarizer] = None,
    ):
        """Initialize the compactor.

        Args:
            config: Budget and strategy (defaults to CompactionConfig())
            summarizer: Capability used by the summarize strategy
        """
        self._config = config or CompactionConfig()
        self.summarizer = summarizer

    @property
    def config(self) -> CompactionConfig:
        """Current configuration snapshot."""
        return self._config

    def update_config(
        self,
        config: Optional[CompactionConfig] = None,
        **changes,
    ) -> CompactionConfig:
        """Replace the configuration.

        Builds a complete new config (``config`` or the current one, with
        ``changes`` applied and validated) and swaps it in one assignment.

        Returns:
            The new configuration
        """
        base = config or self._config
        if changes:
            base = CompactionConfig(**{**base.model_dump(), **changes})
        self._config = base
        logger.debug(f"Compaction config updated: {base}")
        return base

    def estimate_tokens(self, messages: Sequence[Message]) -> int:
        """Estimate tokens for a list of messages."""
        return estimate_tokens(messages)

    def needs_compaction(self, messages: Sequence[Message]) -> bool:
        """Check if messages exceed the message or token budget."""
        return self._exceeds(messages, self._config)

    def get_stats(self, messages: Sequence[Message]) -> CompactionStats:
        """Report size and budget status for a transcript."""
        config = self._config
        return CompactionStats(
            message_count=len(messages),
            estimated_tokens=estimate_tokens(messages),
            needs_compaction=self._exceeds(messages, config),
        )

    def compact(self, messages: Sequence[Message]) -> CompactionResult:
        """Compact messages if they exceed the budget.

        The summarize strategy needs an async summarizer; this synchronous
        entry point falls back to truncate-oldest for it. Use
        ``compact_async`` to get real summaries.

        Args:
            messages: Transcript to compact

        Returns:
            CompactionResult with the kept messages and savings
        """
        config = self._config

        if config.strategy == CompactionStrategy.SUMMARIZE and self.summarizer is not None:
            if self._exceeds(messages, config):
                logger.warning(
                    "Summarize strategy requested from synchronous compact(); "
                    "falling back to truncate_oldest (use compact_async)"
                )
        return self._compact_with(messages, config)

    async def compact_async(self, messages: Sequence[Message]) -> CompactionResult:
        """Compact messages, awaiting the summarizer when configured.

        Args:
            messages: Transcript to compact

        Returns:
            CompactionResult with the kept messages and savings
        """
        config = self._config
        summarizer = self.summarizer

        if (
            config.strategy == CompactionStrategy.SUMMARIZE
            and summarizer is not None
            and self._exceeds(messages, config)
        ):
            return await self._summarize(messages, config, summarizer)
        return self._compact_with(messages, config)

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _compact_with(self, messages: Sequence[Message], config: CompactionConfig) -> CompactionResult:
        if not self._exceeds(messages, config):
            return CompactionResult(messages=list(messages))

        if config.strategy == CompactionStrategy.SELECTIVE:
            return self._selective(messages)
        if config.strategy == CompactionStrategy.BOOKEND:
            return self._bookend(messages, config)

        # truncate_oldest, and summarize without a summarizer
        result, _ = self._truncate_oldest(messages, config)
        return result

    def _exceeds(self, messages: Sequence[Message], config: CompactionConfig) -> bool:
        if len(messages) > config.max_messages:
            return True
        return estimate_tokens(messages) > config.max_tokens

    def _partition(self, messages: Sequence[Message], config: CompactionConfig) -> _Partition:
        partition = _Partition()
        for idx, msg in enumerate(messages):
            if config.preserve_system and msg.role == MessageRole.SYSTEM:
                partition.system.append((idx, msg))
            elif config.preserve_functions and (msg.is_tool_result or msg.has_tool_metadata):
                partition.function.append((idx, msg))
            else:
                partition.other.append((idx, msg))
        return partition

    def _truncate_oldest(
        self,
        messages: Sequence[Message],
        config: CompactionConfig,
        reserved_slots: int = 0,
    ) -> tuple[CompactionResult, list[Message]]:
        """Keep preserved messages plus the most recent of the rest.

        Output order is preserved-system, recent remainder, then
        preserved-function messages. Tool and function messages therefore
        end up after every kept turn regardless of where they were.

        Returns:
            Tuple of (result, dropped messages)
        """
        partition = self._partition(messages, config)

        preserved_count = len(partition.system) + len(partition.function)
        available = max(0, config.max_messages - preserved_count - reserved_slots)

        cut = max(0, len(partition.other) - available)
        dropped = [m for _, m in partition.other[:cut]]
        recent = partition.other[cut:]

        relocated = False
        if partition.function and recent:
            last_recent_idx = recent[-1][0]
            relocated = any(idx < last_recent_idx for idx, _ in partition.function)
        if relocated:
            logger.warning(
                "Truncation moved tool/function messages to the end of the "
                "transcript; tool calls may no longer sit next to their results"
            )

        compacted = (
            [m for _, m in partition.system]
            + [m for _, m in recent]
            + [m for _, m in partition.function]
        )

        logger.debug(
            f"truncate_oldest: kept {len(compacted)}/{len(messages)} messages, "
            f"dropped {len(dropped)}"
        )

        result = CompactionResult(
            messages=compacted,
            messages_removed=len(dropped),
            tokens_saved=estimate_tokens(dropped),
            tool_messages_relocated=relocated,
        )
        return result, dropped

    def _selective(self, messages: Sequence[Message]) -> CompactionResult:
        """Keep system, tool, long and recent messages in original order."""
        kept: list[Message] = []
        removed: list[Message] = []
        recent_start = len(messages) - SELECTIVE_RECENT_COUNT

        for idx, msg in enumerate(messages):
            if (
                msg.role == MessageRole.SYSTEM
                or msg.is_tool_result
                or msg.has_tool_metadata
                or len(msg.content or "") > SELECTIVE_MIN_LENGTH
                or idx >= recent_start
            ):
                kept.append(msg)
            else:
                removed.append(msg)

        return CompactionResult(
            messages=kept,
            messages_removed=len(removed),
            tokens_saved=estimate_tokens(removed),
        )

    def _bookend(self, messages: Sequence[Message], config: CompactionConfig) -> CompactionResult:
        """Keep the first and last ``max_messages // 2`` messages."""
        if len(messages) <= config.max_messages:
            return CompactionResult(messages=list(messages))

        bookend_size = config.max_messages // 2
        tail_start = max(bookend_size, len(messages) - bookend_size)

        first = list(messages[:bookend_size])
        middle = list(messages[bookend_size:tail_start])
        last = list(messages[tail_start:])

        placeholder = format_bookend_placeholder(len(middle))
        compacted = first + [Message.system(placeholder)] + last

        return CompactionResult(
            messages=compacted,
            messages_removed=len(middle),
            tokens_saved=estimate_tokens(middle),
            summary=placeholder,
        )

    async def _summarize(
        self,
        messages: Sequence[Message],
        config: CompactionConfig,
        summarizer: Summarizer,
    ) -> CompactionResult:
        """Replace the messages truncation would drop with one summary."""
        plan, dropped = self._truncate_oldest(messages, config, reserved_slots=1)
        if not dropped:
            return plan

        summary_text = await summarizer.summarize(dropped)
        summary_msg = Message.system(format_summary_message(len(dropped), summary_text))

        # Summary goes right after the preserved system messages
        insert_at = sum(
            1 for m in plan.messages if config.preserve_system and m.role == MessageRole.SYSTEM
        )
        compacted = plan.messages[:insert_at] + [summary_msg] + plan.messages[insert_at:]

        logger.info(f"Summarized {len(dropped)} messages into one system message")

        return CompactionResult(
            messages=compacted,
            messages_removed=len(dropped),
            tokens_saved=max(0, estimate_tokens(dropped) - estimate_tokens([summary_msg])),
            summary=summary_text,
            tool_messages_relocated=plan.tool_messages_relocated,
        )


class ContextSummarizer:
    """Summarizes transcript history with an agent.

    Any agent works; typically one backed by a cheap model.
    """

    def __init__(self, agent: Agent, max_words: int = 300):
        """Initialize with an agent for summarization.

        Args:
            agent: Agent used to generate summaries
            max_words: Target upper bound for summary length
        """
        self.agent = agent
        self.max_words = max_words

    async def summarize(self, messages: list[Message]) -> str:
        """Generate a summary of conversation messages.

        Args:
            messages: Messages to summarize

        Returns:
            Summary text
        """
        conversation_text = self._format_for_summary(messages)
        prompt = format_context_summary_prompt(conversation_text, self.max_words)

        response = await self.agent.generate_reply([Message.user(prompt)])
        return response.content

    def _format_for_summary(self, messages: list[Message]) -> str:
        """Format messages for the summarization prompt."""
        lines = []
        for msg in messages:
            role = msg.role.value.upper()
            name_tag = f" [{msg.name}]" if msg.name else ""
            lines.append(f"{role}{name_tag}: {msg.content}")

        return "\n\n".join(lines)


def create_compactor(
    settings: Optional[Settings] = None,
    summarizer: Optional[Summarizer] = None,
) -> ContextCompactor:
    """Factory function to create a compactor from settings.

    Args:
        settings: Application settings (defaults are used when omitted)
        summarizer: Capability for the summarize strategy

    Returns:
        Configured ContextCompactor instance
    """
    settings = settings or Settings()
    return ContextCompactor(config=settings.compaction, summarizer=summarizer)
