"""Tests for the agent capability and cancellation tokens."""

import asyncio

import pytest

from chorus.agents import Agent, CancellationToken, FunctionAgent
from chorus.models.types import Message, MessageRole
from chorus.utils.logging import LogCapture


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_initial_state(self) -> None:
        """Test a new token is not cancelled."""
        token = CancellationToken()
        assert token.is_cancelled is False
        token.raise_if_cancelled()

    def test_cancel(self) -> None:
        """Test cancelling flips the flag."""
        token = CancellationToken()
        token.cancel()
        assert token.is_cancelled is True

    def test_raise_if_cancelled(self) -> None:
        """Test a cancelled token raises CancelledError."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(asyncio.CancelledError):
            token.raise_if_cancelled()

    def test_callbacks_run_once(self) -> None:
        """Test callbacks fire once even if cancel is repeated."""
        token = CancellationToken()
        calls: list[str] = []
        token.on_cancelled(lambda: calls.append("first"))
        token.on_cancelled(lambda: calls.append("second"))

        token.cancel()
        token.cancel()

        assert calls == ["first", "second"]

    def test_callback_after_cancel_runs_immediately(self) -> None:
        """Test late registration on a cancelled token runs right away."""
        token = CancellationToken()
        token.cancel()
        calls: list[str] = []

        token.on_cancelled(lambda: calls.append("late"))

        assert calls == ["late"]

    def test_failing_callback_is_logged(self) -> None:
        """Test a failing callback does not stop the others."""
        token = CancellationToken()
        calls: list[str] = []

        def broken() -> None:
            raise RuntimeError("callback failed")

        token.on_cancelled(broken)
        token.on_cancelled(lambda: calls.append("ran"))

        with LogCapture("chorus.agents.cancellation") as capture:
            token.cancel()

        assert calls == ["ran"]
        assert capture.has_message("Error in cancellation callback")

    @pytest.mark.asyncio
    async def test_wait(self) -> None:
        """Test wait returns once the token is cancelled."""
        token = CancellationToken()
        waiter = asyncio.create_task(token.wait())
        await asyncio.sleep(0)
        assert not waiter.done()

        token.cancel()
        await asyncio.wait_for(waiter, timeout=1)

    @pytest.mark.asyncio
    async def test_wait_already_cancelled(self) -> None:
        """Test wait returns immediately on a cancelled token."""
        token = CancellationToken()
        token.cancel()
        await asyncio.wait_for(token.wait(), timeout=1)


class TestAgent:
    """Tests for the Agent base class."""

    def test_cannot_instantiate_abstract(self) -> None:
        """Test Agent requires name and generate_reply."""
        with pytest.raises(TypeError):
            Agent()

    def test_repr(self) -> None:
        """Test repr shows the agent name."""
        agent = FunctionAgent("alice", lambda messages, token: "hi")
        assert repr(agent) == "FunctionAgent(name='alice')"


class TestFunctionAgent:
    """Tests for FunctionAgent."""

    def test_empty_name_rejected(self) -> None:
        """Test agents need a name."""
        with pytest.raises(ValueError):
            FunctionAgent("  ", lambda messages, token: "hi")

    @pytest.mark.asyncio
    async def test_string_reply(self) -> None:
        """Test string results become named assistant messages."""
        agent = FunctionAgent("alice", lambda messages, token: f"seen {len(messages)}")

        reply = await agent.generate_reply([Message.user("Hello")])

        assert reply.role == MessageRole.ASSISTANT
        assert reply.content == "seen 1"
        assert reply.name == "alice"

    @pytest.mark.asyncio
    async def test_async_reply(self) -> None:
        """Test coroutine functions are awaited."""

        async def reply_fn(messages, token):
            await asyncio.sleep(0)
            return "async reply"

        agent = FunctionAgent("bob", reply_fn)
        reply = await agent.generate_reply([])

        assert reply.content == "async reply"

    @pytest.mark.asyncio
    async def test_message_reply_passthrough(self) -> None:
        """Test Message results are returned unchanged."""
        message = Message.assistant("custom", name="someone-else")
        agent = FunctionAgent("bob", lambda messages, token: message)

        assert await agent.generate_reply([]) is message

    @pytest.mark.asyncio
    async def test_receives_token(self) -> None:
        """Test the token is forwarded to the function."""
        seen: list = []

        def reply_fn(messages, token):
            seen.append(token)
            return "ok"

        token = CancellationToken()
        await FunctionAgent("bob", reply_fn).generate_reply([], token)

        assert seen == [token]

    @pytest.mark.asyncio
    async def test_cancelled_before_call(self) -> None:
        """Test a cancelled token stops the function from running."""
        calls: list = []
        agent = FunctionAgent("bob", lambda messages, token: calls.append(1) or "ok")
        token = CancellationToken()
        token.cancel()

        with pytest.raises(asyncio.CancelledError):
            await agent.generate_reply([], token)
        assert calls == []

    @pytest.mark.asyncio
    async def test_errors_propagate(self) -> None:
        """Test function errors are not swallowed."""

        def reply_fn(messages, token):
            raise RuntimeError("model unavailable")

        with pytest.raises(RuntimeError, match="model unavailable"):
            await FunctionAgent("bob", reply_fn).generate_reply([])
