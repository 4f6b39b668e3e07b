"""Speaker selection strategies for the group chat.

Handles:
- Picking the next agent to speak from the roster
- Round-robin, random, manual-override and constrained policies
- A factory for building selectors from configuration
"""

import logging
import random
from abc import ABC, abstractmethod
from typing import Iterable, Literal, Optional, Sequence

from chorus.agents.base import Agent
from chorus.errors import (
    EmptyRosterError,
    InvalidConfigError,
    NoAllowedAgentsError,
    UnknownAgentError,
)
from chorus.models.types import Message

logger = logging.getLogger(__name__)

# Type alias for selector names accepted by create_selector
SelectorName = Literal["round_robin", "random", "manual", "constrained"]


class SpeakerSelector(ABC):
    """Policy choosing the next agent to produce a message.

    Selectors only look at agents by name. They never mutate the roster or
    the transcript they are given.
    """

    @abstractmethod
    def select_speaker(
        self,
        agents: Sequence[Agent],
        messages: Sequence[Message],
        last_speaker: Optional[Agent] = None,
    ) -> Agent:
        """Select the next speaker.

        Args:
            agents: Roster to choose from, in stable order
            messages: Conversation so far
            last_speaker: Agent that spoke last, if any

        Returns:
            The agent that speaks next

        Raises:
            EmptyRosterError: If ``agents`` is empty
        """
        pass

    @abstractmethod
    def describe(self) -> str:
        """Human-readable description of this policy."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


def _require_agents(agents: Sequence[Agent]) -> None:
    if not agents:
        raise EmptyRosterError()


class RoundRobinSelector(SpeakerSelector):
    """Cycles through agents in roster order.

    Stateless: the next speaker depends only on the roster and the last
    speaker. A last speaker missing from the roster restarts at the first
    agent.
    """

    def select_speaker(
        self,
        agents: Sequence[Agent],
        messages: Sequence[Message],
        last_speaker: Optional[Agent] = None,
    ) -> Agent:
        _require_agents(agents)

        if last_speaker is None:
            return agents[0]

        current_idx = -1
        for idx, agent in enumerate(agents):
            if agent.name == last_speaker.name:
                current_idx = idx
                break

        return agents[(current_idx + 1) % len(agents)]

    def describe(self) -> str:
        return "Round-robin: Cycles through agents in sequential order"


class RandomSelector(SpeakerSelector):
    """Picks a speaker uniformly at random.

    The last speaker is left out of the candidates whenever someone else is
    available, so nobody speaks twice in a row.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """Initialize the selector.

        Args:
            rng: Random source (defaults to a freshly seeded generator)
        """
        self._rng = rng or random.Random()

    def select_speaker(
        self,
        agents: Sequence[Agent],
        messages: Sequence[Message],
        last_speaker: Optional[Agent] = None,
    ) -> Agent:
        _require_agents(agents)

        candidates = list(agents)
        if last_speaker is not None and len(agents) > 1:
            candidates = [a for a in agents if a.name != last_speaker.name]
            if not candidates:
                # Every roster entry shares the last speaker's name
                candidates = list(agents)

        return self._rng.choice(candidates)

    def describe(self) -> str:
        return "Random: Randomly selects the next speaker"


class ManualSelector(SpeakerSelector):
    """Lets a caller name the next speaker explicitly.

    The pending name is a one-shot override: a successful selection clears
    it, after which the selector falls back to the first agent. Setting it
    while a selection is in flight is the caller's race to avoid.
    """

    def __init__(self) -> None:
        self._next_speaker_name: Optional[str] = None

    @property
    def pending_speaker(self) -> Optional[str]:
        """Name queued for the next selection, if any."""
        return self._next_speaker_name

    def set_next_speaker(self, name: str) -> None:
        """Queue an agent to speak next.

        Args:
            name: Name of the agent to speak next
        """
        self._next_speaker_name = name

    def clear(self) -> None:
        """Drop any pending override."""
        self._next_speaker_name = None

    def select_speaker(
        self,
        agents: Sequence[Agent],
        messages: Sequence[Message],
        last_speaker: Optional[Agent] = None,
    ) -> Agent:
        _require_agents(agents)

        if self._next_speaker_name is None:
            return agents[0]

        for agent in agents:
            if agent.name == self._next_speaker_name:
                logger.debug(f"Manual override consumed: {agent.name}")
                self._next_speaker_name = None
                return agent

        raise UnknownAgentError(
            self._next_speaker_name,
            available=[a.name for a in agents],
        )

    def describe(self) -> str:
        return "Manual: Allows explicit selection of the next speaker"


class ConstrainedSelector(SpeakerSelector):
    """Restricts selection to an allow-list of agent names.

    The filtered roster is handed to a delegate selector (round-robin by
    default) together with the full transcript and the unchanged last
    speaker, even when the last speaker is not on the allow-list.
    """

    def __init__(
        self,
        allowed_speakers: Iterable[str],
        delegate: Optional[SpeakerSelector] = None,
    ):
        """Initialize the selector.

        Args:
            allowed_speakers: Names of agents allowed to speak
            delegate: Selector used among the allowed agents
        """
        self._allowed: set[str] = set(allowed_speakers)
        self.delegate = delegate or RoundRobinSelector()

    @property
    def allowed_speakers(self) -> frozenset[str]:
        """Names currently allowed to speak."""
        return frozenset(self._allowed)

    def set_allowed_speakers(self, names: Iterable[str]) -> None:
        """Replace the allow-list."""
        self._allowed = set(names)

    def add_allowed_speaker(self, name: str) -> None:
        """Allow one more agent to speak."""
        self._allowed.add(name)

    def remove_allowed_speaker(self, name: str) -> None:
        """Disallow an agent; unknown names are ignored."""
        self._allowed.discard(name)

    def select_speaker(
        self,
        agents: Sequence[Agent],
        messages: Sequence[Message],
        last_speaker: Optional[Agent] = None,
    ) -> Agent:
        _require_agents(agents)

        allowed_agents = [a for a in agents if a.name in self._allowed]
        if not allowed_agents:
            raise NoAllowedAgentsError(self._allowed)

        return self.delegate.select_speaker(allowed_agents, messages, last_speaker)

    def describe(self) -> str:
        names = ", ".join(sorted(self._allowed))
        return f"Constrained: Only allows specific agents ({names})"

    def __repr__(self) -> str:
        return (
            f"ConstrainedSelector(allowed={sorted(self._allowed)!r}, "
            f"delegate={self.delegate!r})"
        )


def create_selector(
    strategy: SelectorName = "round_robin",
    allowed_speakers: Optional[Iterable[str]] = None,
    delegate: Optional[SpeakerSelector] = None,
    rng: Optional[random.Random] = None,
) -> SpeakerSelector:
    """Factory function to create a speaker selector.

    Args:
        strategy: Selector name
        allowed_speakers: Allow-list for the constrained selector
        delegate: Delegate for the constrained selector
        rng: Random source for the random selector

    Returns:
        Configured SpeakerSelector instance

    Raises:
        InvalidConfigError: If the strategy name is unknown, or the
            constrained selector is requested without an allow-list
    """
    normalized = strategy.strip().lower().replace("-", "_")

    if normalized == "round_robin":
        return RoundRobinSelector()
    if normalized == "random":
        return RandomSelector(rng=rng)
    if normalized == "manual":
        return ManualSelector()
    if normalized == "constrained":
        if allowed_speakers is None:
            raise InvalidConfigError(
                "allowed_speakers", None, "constrained selection needs an allow-list"
            )
        return ConstrainedSelector(allowed_speakers, delegate=delegate)

    raise InvalidConfigError(
        "speaker_selection",
        strategy,
        "expected one of round_robin, random, manual, constrained",
    )
