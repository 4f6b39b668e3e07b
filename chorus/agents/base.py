"""Abstract base class for conversational agents."""

import inspect
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Union

from chorus.models.types import Message

from .cancellation import CancellationToken


ReplyFunction = Callable[
    [list[Message], Optional[CancellationToken]],
    Union[Message, str, Awaitable[Union[Message, str]]],
]


class Agent(ABC):
    """Anything that can take part in a group chat.

    Agents are identified by ``name`` alone. The group chat hands every agent
    a copy of the full transcript and appends whatever message it returns.
    Failures (typically ``ProviderError``) propagate to the caller of the
    chat; timeouts and retries are the agent's own business.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name of this agent within a roster."""
        pass

    @abstractmethod
    async def generate_reply(
        self,
        messages: list[Message],
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Message:
        """Produce the next message given the transcript so far.

        Args:
            messages: Transcript so far (a copy; safe to keep)
            cancellation_token: Optional cancellation signal

        Returns:
            The reply message
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class FunctionAgent(Agent):
    """Agent backed by a plain callable.

    The callable receives the transcript and the cancellation token and may
    return a ``Message`` or a string, either directly or from a coroutine.
    Strings become assistant messages attributed to this agent.
    """

    def __init__(self, name: str, reply_fn: ReplyFunction):
        """Initialize the agent.

        Args:
            name: Agent name
            reply_fn: Callable producing the reply
        """
        if not name or not name.strip():
            raise ValueError("Agent name cannot be empty")
        self._name = name
        self._reply_fn = reply_fn

    @property
    def name(self) -> str:
        return self._name

    async def generate_reply(
        self,
        messages: list[Message],
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Message:
        if cancellation_token is not None:
            cancellation_token.raise_if_cancelled()

        result = self._reply_fn(messages, cancellation_token)
        if inspect.isawaitable(result):
            result = await result

        if isinstance(result, Message):
            return result
        return Message.assistant(str(result), name=self._name)
