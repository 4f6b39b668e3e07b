"""Group chat event and state types.

Events are yielded by ``GroupChat.run_stream`` so callers can render
progress or feed a structured logging sink while a run is in flight.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from chorus.models.types import Message


class ChatState(Enum):
    """Lifecycle states of a group chat run."""

    IDLE = auto()  # Before run() or after reset()
    AWAITING_SPEAKER_SELECTION = auto()
    AWAITING_REPLY = auto()
    TERMINATED = auto()  # An agent emitted the termination marker
    ROUND_LIMIT_REACHED = auto()  # max_rounds exhausted; not an error
    FAILED = auto()  # Aborted by an error or cancellation


class EventType(Enum):
    """Types of events emitted by the group chat."""

    RUN_START = auto()  # Seed message appended
    SPEAKER_SELECTED = auto()  # Strategy picked the next agent
    MESSAGE_APPENDED = auto()  # Agent reply added to the transcript
    TERMINATED = auto()  # Reply contained the termination marker
    ROUND_LIMIT_REACHED = auto()  # Ran out of rounds
    RUN_COMPLETE = auto()  # Final transcript available


@dataclass
class ChatEvent:
    """Event emitted by the group chat during a run.

    The type field determines which other fields are populated:
    - RUN_START: message (the seed)
    - SPEAKER_SELECTED: round, speaker
    - MESSAGE_APPENDED: round, speaker, message
    - TERMINATED: round, speaker, message
    - ROUND_LIMIT_REACHED: round
    - RUN_COMPLETE: round, messages
    """

    type: EventType
    round: int = 0
    speaker: Optional[str] = None
    message: Optional[Message] = None
    messages: list[Message] = field(default_factory=list)

    @classmethod
    def run_start(cls, seed: Message) -> "ChatEvent":
        """Create a RUN_START event."""
        return cls(type=EventType.RUN_START, message=seed)

    @classmethod
    def speaker_selected(cls, round: int, speaker: str) -> "ChatEvent":
        """Create a SPEAKER_SELECTED event."""
        return cls(type=EventType.SPEAKER_SELECTED, round=round, speaker=speaker)

    @classmethod
    def message_appended(cls, round: int, speaker: str, message: Message) -> "ChatEvent":
        """Create a MESSAGE_APPENDED event."""
        return cls(
            type=EventType.MESSAGE_APPENDED,
            round=round,
            speaker=speaker,
            message=message,
        )

    @classmethod
    def terminated(cls, round: int, speaker: str, message: Message) -> "ChatEvent":
        """Create a TERMINATED event."""
        return cls(
            type=EventType.TERMINATED,
            round=round,
            speaker=speaker,
            message=message,
        )

    @classmethod
    def round_limit_reached(cls, round: int) -> "ChatEvent":
        """Create a ROUND_LIMIT_REACHED event."""
        return cls(type=EventType.ROUND_LIMIT_REACHED, round=round)

    @classmethod
    def run_complete(cls, round: int, messages: list[Message]) -> "ChatEvent":
        """Create a RUN_COMPLETE event."""
        return cls(type=EventType.RUN_COMPLETE, round=round, messages=messages)
