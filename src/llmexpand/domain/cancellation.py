"""Cooperative cancellation for completion requests.

A ``CancellationToken`` is created per request and shared by every backend
call spawned for it. Cancelling is fire-and-forget: ``cancel()`` only sets the
signal and runs the registered callbacks, it never waits for the calls it
interrupts.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from llmexpand.domain.errors import RequestCancelled
from llmexpand.logger import get_logger

__all__ = ["CancellationToken"]

logger = get_logger("cancellation")

T = TypeVar("T")


class CancellationToken:
    """Write-once cancellation signal shared by the calls of one request.

    Example:
        ```python
        token = CancellationToken()
        try:
            data = await token.guard(client.post(...))
        except RequestCancelled:
            return fallback
        ```
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._callbacks: list[Callable[[], None]] = []
        self._reason: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "request cancelled") -> None:
        """Trigger the signal. Later calls are no-ops."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logger.debug(f"Cancellation requested: {reason}")

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.error(f"Cancellation callback failed: {e}")

    def on_cancelled(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback run once when the token is cancelled.

        The callback runs immediately if the token is already cancelled.

        Returns:
            A function that unregisters the callback
        """
        if self._event.is_set():
            callback()
            return lambda: None

        self._callbacks.append(callback)

        def unregister() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unregister

    @classmethod
    def linked_to(cls, parent: Optional["CancellationToken"]) -> tuple["CancellationToken", Callable[[], None]]:
        """
        Create a token that is cancelled whenever ``parent`` is.

        Returns:
            The child token and a function detaching it from the parent
        """
        child = cls()
        if parent is None:
            return child, lambda: None
        detach = parent.on_cancelled(lambda: child.cancel(parent.reason or "parent cancelled"))
        return child, detach

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelled(self._reason or "request cancelled")

    async def wait(self) -> None:
        """Suspend until the token is cancelled."""
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the token fires first.

        When the token fires, the pending work is cancelled and
        ``RequestCancelled`` is raised. Exceptions of the work itself
        propagate unchanged.
        """
        if self._event.is_set() and asyncio.iscoroutine(awaitable):
            awaitable.close()
        self.raise_if_cancelled()

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()

        if work.done():
            return work.result()

        work.cancel()
        await asyncio.wait({work})
        self.raise_if_cancelled()
