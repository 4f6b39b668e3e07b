"""Transcript message types shared by agents, selectors and the compactor."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from chorus.errors import InvalidMessageError


class MessageRole(str, Enum):
    """Role of a message sender."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"
    FUNCTION = "function"  # Legacy single-function result


@dataclass(frozen=True)
class FunctionCall:
    """A legacy single function invocation emitted by an assistant turn."""

    name: str
    arguments: str  # JSON-encoded, forwarded verbatim


@dataclass(frozen=True)
class ToolCall:
    """A structured tool invocation request emitted by an assistant turn."""

    id: str
    name: str
    arguments: str  # JSON-encoded, forwarded verbatim
    type: str = "function"


@dataclass(frozen=True)
class Message:
    """A message in a conversation transcript.

    Messages are immutable; a transcript only ever grows by appending new
    ones or shrinks by dropping whole messages during compaction.
    """

    role: MessageRole
    content: str = ""
    name: Optional[str] = None  # Originating agent or function
    tool_call_id: Optional[str] = None  # Links a tool result to its invocation
    tool_calls: tuple[ToolCall, ...] = field(default_factory=tuple)
    function_call: Optional[FunctionCall] = None

    def __post_init__(self) -> None:
        if not isinstance(self.role, MessageRole):
            object.__setattr__(self, "role", MessageRole(self.role))
        if not isinstance(self.tool_calls, tuple):
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))
        if self.content is None:
            object.__setattr__(self, "content", "")
        if self.role == MessageRole.TOOL and not self.tool_call_id:
            raise InvalidMessageError("tool", "tool results must carry a tool_call_id")

    @classmethod
    def user(cls, content: str, name: Optional[str] = None) -> "Message":
        """Create a user message."""
        return cls(role=MessageRole.USER, content=content, name=name)

    @classmethod
    def assistant(
        cls,
        content: str,
        name: Optional[str] = None,
        tool_calls: Optional[list[ToolCall]] = None,
        function_call: Optional[FunctionCall] = None,
    ) -> "Message":
        """Create an assistant message."""
        return cls(
            role=MessageRole.ASSISTANT,
            content=content,
            name=name,
            tool_calls=tuple(tool_calls or ()),
            function_call=function_call,
        )

    @classmethod
    def system(cls, content: str) -> "Message":
        """Create a system message."""
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def tool(cls, tool_call_id: str, content: str, name: Optional[str] = None) -> "Message":
        """Create a tool result message for a single tool call."""
        return cls(
            role=MessageRole.TOOL,
            content=content,
            name=name,
            tool_call_id=tool_call_id,
        )

    @classmethod
    def function_result(cls, name: str, content: str) -> "Message":
        """Create a legacy function result message."""
        return cls(role=MessageRole.FUNCTION, content=content, name=name)

    @property
    def is_tool_result(self) -> bool:
        """Check if this message carries the output of a tool or function."""
        return self.role in (MessageRole.TOOL, MessageRole.FUNCTION)

    @property
    def has_tool_metadata(self) -> bool:
        """Check if this message carries any tool or function call metadata."""
        return bool(self.tool_calls) or self.function_call is not None or bool(self.tool_call_id)

    @property
    def speaker(self) -> str:
        """Name to show for this message in logs."""
        return self.name or self.role.value
