"""Main orchestration engine for Chorus.

The GroupChat coordinates a multi-agent conversation by:
1. Seeding the transcript with the caller's prompt
2. Asking the speaker selector who talks next
3. Awaiting that agent's reply and appending it verbatim
4. Stopping on the termination marker or when rounds run out
5. Yielding events for progress rendering
"""

import asyncio
import logging
from typing import AsyncIterator, Optional, Sequence

from chorus.agents.base import Agent
from chorus.agents.cancellation import CancellationToken
from chorus.config import Settings
from chorus.errors import (
    DuplicateAgentError,
    InsufficientAgentsError,
    InvalidConfigError,
    OrchestrationError,
)
from chorus.models.types import Message

from .events import ChatEvent, ChatState, EventType
from .selectors import RoundRobinSelector, SpeakerSelector, create_selector

logger = logging.getLogger(__name__)

# Defaults for a new group chat
DEFAULT_MAX_ROUNDS = 10
DEFAULT_ADMIN_NAME = "Admin"
DEFAULT_TERMINATION_MARKER = "terminate"

# Minimum roster size for a conversation
MIN_AGENTS = 2

# Characters of reply content shown in progress lines
PREVIEW_CHARS = 200


class GroupChat:
    """Turn scheduler for a conversation among several agents.

    One run is strictly sequential: each reply must land before the next
    speaker is chosen, since both selection and termination look at the
    message just appended. The agent call is the only suspension point.
    """

    def __init__(
        self,
        agents: Sequence[Agent],
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        admin_name: str = DEFAULT_ADMIN_NAME,
        speaker_selector: Optional[SpeakerSelector] = None,
        termination_marker: str = DEFAULT_TERMINATION_MARKER,
    ):
        """Initialize the group chat.

        Args:
            agents: Roster of agents, in round-robin order
            max_rounds: Maximum number of agent replies per run
            admin_name: Name attached to the seed message
            speaker_selector: Strategy for picking speakers (default round-robin)
            termination_marker: Case-insensitive substring that ends a run

        Raises:
            InsufficientAgentsError: If fewer than two agents are given
            DuplicateAgentError: If two agents share a name
            InvalidConfigError: If max_rounds is negative or the marker is empty
        """
        if len(agents) < MIN_AGENTS:
            raise InsufficientAgentsError(len(agents), MIN_AGENTS)

        seen: set[str] = set()
        for agent in agents:
            if agent.name in seen:
                raise DuplicateAgentError(agent.name)
            seen.add(agent.name)

        if max_rounds < 0:
            raise InvalidConfigError("max_rounds", max_rounds, "must be >= 0")
        if not termination_marker:
            raise InvalidConfigError(
                "termination_marker", termination_marker, "cannot be empty"
            )

        self._agents: list[Agent] = list(agents)
        self.max_rounds = max_rounds
        self.admin_name = admin_name
        self.termination_marker = termination_marker
        self._speaker_selector = speaker_selector or RoundRobinSelector()

        # Run state
        self._messages: list[Message] = []
        self._round = 0
        self._last_speaker: Optional[Agent] = None
        self._state = ChatState.IDLE
        # True only while the round loop is executing, not while paused at an event
        self._running = False
        self._run_id = 0

    @property
    def agents(self) -> list[Agent]:
        """Get the roster."""
        return list(self._agents)

    @property
    def messages(self) -> list[Message]:
        """Get a copy of the transcript."""
        return list(self._messages)

    @property
    def round(self) -> int:
        """Number of completed, non-terminating rounds in the current run."""
        return self._round

    @property
    def state(self) -> ChatState:
        """Current lifecycle state."""
        return self._state

    @property
    def last_speaker(self) -> Optional[Agent]:
        """Agent that completed the most recent non-terminating round."""
        return self._last_speaker

    @property
    def hit_round_limit(self) -> bool:
        """Check if the last run ended by exhausting its rounds."""
        return self._state == ChatState.ROUND_LIMIT_REACHED

    @property
    def speaker_selector(self) -> SpeakerSelector:
        """Get the speaker selection strategy."""
        return self._speaker_selector

    @speaker_selector.setter
    def speaker_selector(self, selector: SpeakerSelector) -> None:
        """Swap the strategy; used from the next selection on."""
        logger.debug(f"Speaker selector set to {selector.describe()}")
        self._speaker_selector = selector

    def set_speaker_selector(self, selector: SpeakerSelector) -> None:
        """Swap the speaker selection strategy."""
        self.speaker_selector = selector

    def add_message(self, message: Message) -> None:
        """Append a message to the transcript."""
        self._messages.append(message)

    def is_termination_message(self, message: Message) -> bool:
        """Check if a reply asks to end the conversation."""
        return self.termination_marker.lower() in (message.content or "").lower()

    def reset(self) -> None:
        """Clear the transcript and round counter; keep roster and selector.

        A run whose consumer stopped iterating is abandoned; resuming it
        afterwards yields nothing more.
        """
        if self._running:
            raise OrchestrationError("Cannot reset a group chat while a run is in progress")
        self._run_id += 1
        self._messages = []
        self._round = 0
        self._last_speaker = None
        self._state = ChatState.IDLE

    async def run(
        self,
        initial_message: str,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> list[Message]:
        """Run the conversation to completion.

        Reaching ``max_rounds`` is not an error: the transcript is returned
        and ``state`` reports ``ROUND_LIMIT_REACHED``.

        Args:
            initial_message: Prompt that opens the conversation
            cancellation_token: Optional signal passed to every agent

        Returns:
            Copy of the final transcript
        """
        messages: list[Message] = []
        async for event in self.run_stream(initial_message, cancellation_token):
            if event.type == EventType.RUN_COMPLETE:
                messages = event.messages
        return messages

    async def run_stream(
        self,
        initial_message: str,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[ChatEvent]:
        """Run the conversation, yielding events as it progresses.

        Any error from the selector or an agent (including cancellation)
        aborts the run and propagates unchanged; the failed reply does not
        count as a round.

        While the consumer holds an event the run is paused, not in
        progress: ``reset()`` or a new run may take over, and the paused
        stream then ends at its next step.

        Args:
            initial_message: Prompt that opens the conversation
            cancellation_token: Optional signal passed to every agent

        Yields:
            ChatEvent objects, ending with RUN_COMPLETE
        """
        if self._running:
            raise OrchestrationError("A run is already in progress on this group chat")

        self._run_id += 1
        run_id = self._run_id
        rounds = self._rounds(initial_message, cancellation_token, run_id)

        try:
            while True:
                self._running = True
                try:
                    event = await rounds.__anext__()
                except StopAsyncIteration:
                    break
                finally:
                    self._running = False

                yield event

                if self._run_id != run_id:
                    logger.debug("Group chat run superseded; stopping stale stream")
                    break
        finally:
            await rounds.aclose()

    async def _rounds(
        self,
        initial_message: str,
        cancellation_token: Optional[CancellationToken],
        run_id: int,
    ) -> AsyncIterator[ChatEvent]:
        """The round loop behind ``run_stream``."""
        self._round = 0
        self._last_speaker = None

        seed = Message.user(initial_message, name=self.admin_name)
        self.add_message(seed)
        self._state = ChatState.AWAITING_SPEAKER_SELECTION

        try:
            yield ChatEvent.run_start(seed)

            while self._round < self.max_rounds:
                if cancellation_token is not None:
                    cancellation_token.raise_if_cancelled()

                self._state = ChatState.AWAITING_SPEAKER_SELECTION
                speaker = self._speaker_selector.select_speaker(
                    self._agents,
                    list(self._messages),
                    self._last_speaker,
                )
                display_round = self._round + 1
                logger.info(f"[Round {display_round}] Next speaker: {speaker.name}")
                yield ChatEvent.speaker_selected(display_round, speaker.name)

                self._state = ChatState.AWAITING_REPLY
                reply = await speaker.generate_reply(
                    list(self._messages),
                    cancellation_token,
                )
                self.add_message(reply)
                logger.info(f"[{reply.speaker}]: {_preview(reply.content)}")

                if self.is_termination_message(reply):
                    logger.info("Conversation terminated by agent")
                    self._state = ChatState.TERMINATED
                    yield ChatEvent.terminated(display_round, speaker.name, reply)
                    break

                yield ChatEvent.message_appended(display_round, speaker.name, reply)
                self._last_speaker = speaker
                self._round += 1

        except asyncio.CancelledError:
            logger.info("Group chat run cancelled")
            self._state = ChatState.FAILED
            raise

        except GeneratorExit:
            # Stream closed mid-run; a superseded run must not touch the new state
            if self._run_id == run_id and self._state != ChatState.TERMINATED:
                self._state = ChatState.FAILED
            raise

        except Exception as e:
            logger.error(f"Group chat run aborted: {e}")
            self._state = ChatState.FAILED
            raise

        if self._state != ChatState.TERMINATED:
            logger.info("Maximum rounds reached")
            self._state = ChatState.ROUND_LIMIT_REACHED
            yield ChatEvent.round_limit_reached(self._round)

        yield ChatEvent.run_complete(self._round, self.messages)

    def __repr__(self) -> str:
        names = [a.name for a in self._agents]
        return (
            f"GroupChat(agents={names!r}, max_rounds={self.max_rounds}, "
            f"selector={self._speaker_selector!r})"
        )


def _preview(content: str) -> str:
    if len(content) > PREVIEW_CHARS:
        return content[:PREVIEW_CHARS] + "..."
    return content


def create_group_chat(
    agents: Sequence[Agent],
    settings: Optional[Settings] = None,
    speaker_selector: Optional[SpeakerSelector] = None,
) -> GroupChat:
    """Factory function to create a group chat from settings.

    Args:
        agents: Roster of agents
        settings: Application settings (defaults are used when omitted)
        speaker_selector: Explicit selector, overriding the configured one

    Returns:
        Configured GroupChat instance
    """
    settings = settings or Settings()
    conversation = settings.conversation

    if speaker_selector is None:
        speaker_selector = create_selector(
            conversation.speaker_selection,
            allowed_speakers=conversation.allowed_speakers or None,
        )

    return GroupChat(
        agents=agents,
        max_rounds=conversation.max_rounds,
        admin_name=conversation.admin_name,
        speaker_selector=speaker_selector,
        termination_marker=conversation.termination_marker,
    )
