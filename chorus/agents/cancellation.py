"""Cooperative cancellation for reply generation."""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CancellationToken:
    """Signal shared between a caller and the agents working on its behalf.

    A token is cancelled at most once. Agents can poll ``is_cancelled``,
    call ``raise_if_cancelled`` between steps, register callbacks, or await
    ``wait()`` alongside their own work.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []
        self._event: Optional[asyncio.Event] = None

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._cancelled

    def cancel(self) -> None:
        """Request cancellation and run registered callbacks once."""
        if self._cancelled:
            return

        self._cancelled = True
        if self._event is not None:
            self._event.set()

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Error in cancellation callback")

    def on_cancelled(self, callback: Callable[[], None]) -> None:
        """Register a callback for cancellation.

        Runs immediately when the token is already cancelled.
        """
        if self._cancelled:
            callback()
        else:
            self._callbacks.append(callback)

    def raise_if_cancelled(self) -> None:
        """Raise ``asyncio.CancelledError`` if cancellation was requested."""
        if self._cancelled:
            raise asyncio.CancelledError("Operation was cancelled")

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        if self._cancelled:
            return
        if self._event is None:
            self._event = asyncio.Event()
        await self._event.wait()
