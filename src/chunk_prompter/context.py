"""Cancellation and deadline signal shared by a prompting run.

A ``RunContext`` is handed to every prompt call. The stream pipeline checks
it before each chunk, and services wrap their remote calls in
``RunContext.run`` so an in-flight request is abandoned once the context is
cancelled or its deadline passes.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Optional, TypeVar

from .errors import ContextCancelledError

T = TypeVar("T")

CANCELED_REASON = "context canceled"
DEADLINE_EXCEEDED_REASON = "context deadline exceeded"


class RunContext:
    """Cancellable context with an optional monotonic deadline."""

    def __init__(self, deadline: Optional[float] = None):
        """Initialize context.

        Args:
            deadline: Absolute ``time.monotonic()`` value after which the
                context counts as cancelled (None = no deadline)
        """
        self.deadline = deadline
        self._reason: Optional[str] = None
        self._done: Optional[asyncio.Event] = None

    @classmethod
    def with_timeout(cls, seconds: float) -> "RunContext":
        """Create a context that expires ``seconds`` from now."""
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self, reason: str = CANCELED_REASON) -> None:
        """Cancel the context. Only the first reason is kept."""
        if self._reason is None:
            self._reason = reason
        if self._done is not None:
            self._done.set()

    @property
    def reason(self) -> Optional[str]:
        if self._reason is not None:
            return self._reason
        if self.deadline is not None and time.monotonic() >= self.deadline:
            return DEADLINE_EXCEEDED_REASON
        return None

    @property
    def cancelled(self) -> bool:
        return self.reason is not None

    def err(self) -> Optional[ContextCancelledError]:
        """Return the cancellation error, or None while the context is live."""
        reason = self.reason
        if reason is None:
            return None
        return ContextCancelledError(reason)

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline (None = no deadline)."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def _done_event(self) -> asyncio.Event:
        if self._done is None:
            self._done = asyncio.Event()
            if self._reason is not None:
                self._done.set()
        return self._done

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the context ends first.

        Raises:
            ContextCancelledError: If the context is cancelled or expires
                before the awaitable finishes. The awaitable is cancelled.
        """
        err = self.err()
        if err is not None:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise err

        task: asyncio.Future[Any] = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._done_event().wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise self.err() or ContextCancelledError(DEADLINE_EXCEEDED_REASON)
