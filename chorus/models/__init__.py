"""Transcript message types for Chorus."""

from .types import FunctionCall, Message, MessageRole, ToolCall

__all__ = [
    "FunctionCall",
    "Message",
    "MessageRole",
    "ToolCall",
]
