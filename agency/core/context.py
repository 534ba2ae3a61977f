"""Cancellable execution context passed to every pipe."""

import asyncio
import logging
import threading
import time
import weakref
from typing import Any, Awaitable, Optional, TypeVar
from uuid import uuid4

from ..exceptions import ContextCancelledError, DeadlineExceededError

logger = logging.getLogger(__name__)

R = TypeVar("R")


def _wake(waiter: asyncio.Future) -> None:
    if not waiter.done():
        waiter.set_result(None)


class Context:
    """Cancellation token and shared metadata for one pipeline execution.

    A context is either the background context (never cancelled) or a child
    derived from a parent with ``with_cancel``, ``with_timeout`` or
    ``with_deadline``. Cancelling a context cancels all of its descendants.
    A child's deadline never extends past its parent's.

    Attributes:
        execution_id: Unique identifier shared by every stage receiving this context
        metadata: Arbitrary values shared between stages
    """

    def __init__(
        self,
        parent: Optional["Context"] = None,
        deadline: Optional[float] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        """Initialize the context.

        Prefer ``Context.background()`` and the ``with_*`` constructors.

        Args:
            parent: Context whose cancellation this one inherits
            deadline: Absolute ``time.monotonic()`` value after which the context expires
            metadata: Initial shared metadata
        """
        self.parent = parent
        self.execution_id = parent.execution_id if parent else str(uuid4())
        self.metadata: dict[str, Any] = metadata if metadata is not None else (
            parent.metadata if parent else {}
        )

        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline

        self._error: Optional[ContextCancelledError] = None
        self._lock = threading.Lock()
        self._waiters: set[asyncio.Future] = set()
        self._children: "weakref.WeakSet[Context]" = weakref.WeakSet()
        self._logger = logger.getChild("Context")

        if parent is not None:
            parent._children.add(self)
            if parent._error is not None:
                self._cancel_with(parent._error)

    @classmethod
    def background(cls) -> "Context":
        """Create a root context that is never cancelled and has no deadline."""
        return cls()

    def with_cancel(self) -> "Context":
        """Create a child context that can be cancelled independently."""
        return Context(parent=self)

    def with_deadline(self, deadline: float) -> "Context":
        """Create a child context expiring at ``deadline`` (``time.monotonic()`` clock)."""
        return Context(parent=self, deadline=deadline)

    def with_timeout(self, seconds: float) -> "Context":
        """Create a child context expiring ``seconds`` from now."""
        return self.with_deadline(time.monotonic() + seconds)

    def cancel(self) -> None:
        """Cancel this context and every context derived from it.

        Idempotent and safe to call from any thread.
        """
        if self._error is None:
            self._logger.debug(f"Cancelling context {self.execution_id}")
            self._cancel_with(ContextCancelledError(execution_id=self.execution_id))

    def _cancel_with(self, error: ContextCancelledError) -> None:
        with self._lock:
            if self._error is not None:
                return
            self._error = error
            waiters = list(self._waiters)
            self._waiters.clear()

        # May be called from any thread; wake each waiter on its own loop.
        for waiter in waiters:
            loop = waiter.get_loop()
            if not loop.is_closed():
                loop.call_soon_threadsafe(_wake, waiter)

        for child in list(self._children):
            child._cancel_with(error)

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None if there is no deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def error(self) -> Optional[ContextCancelledError]:
        """Return the reason this context is done, or None while it is still live."""
        if self._error is None and self.deadline is not None and time.monotonic() >= self.deadline:
            self._logger.debug(f"Context {self.execution_id} passed its deadline")
            self._cancel_with(DeadlineExceededError(execution_id=self.execution_id))
        return self._error

    @property
    def done(self) -> bool:
        """Whether the context has been cancelled or has expired."""
        return self.error() is not None

    def raise_if_done(self) -> None:
        """Raise the cancellation error if the context is done."""
        error = self.error()
        if error is not None:
            raise error

    async def run(self, awaitable: Awaitable[R]) -> R:
        """Await ``awaitable``, aborting it when the context is cancelled or expires.

        Args:
            awaitable: Coroutine or future performing the actual work

        Returns:
            The awaitable's result

        Raises:
            ContextCancelledError: If the context is cancelled first
            DeadlineExceededError: If the deadline passes first
        """
        # A fresh future per call, bound to the running loop, so one context
        # can serve several loops and be cancelled from other threads.
        waiter: asyncio.Future = asyncio.get_running_loop().create_future()
        with self._lock:
            if self._error is None:
                self._waiters.add(waiter)

        error = self.error()
        if error is not None:
            self._discard_waiter(waiter)
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise error

        task = asyncio.ensure_future(awaitable)
        try:
            while True:
                done, _ = await asyncio.wait(
                    {task, waiter},
                    timeout=self.remaining(),
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if task in done:
                    return task.result()
                if waiter in done or self.done:
                    break
                # Timed out a hair before the monotonic clock reached the deadline.
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            self._discard_waiter(waiter)

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise self._error  # type: ignore[misc]

    def _discard_waiter(self, waiter: asyncio.Future) -> None:
        with self._lock:
            self._waiters.discard(waiter)

    def __repr__(self) -> str:
        state = "done" if self._error is not None else "live"
        return f"Context(execution_id={self.execution_id!r}, deadline={self.deadline!r}, {state})"
