"""Tests for the cancellable execution context."""

import asyncio
import time

import pytest

from agency.core.context import Context
from agency.exceptions import ContextCancelledError, DeadlineExceededError


class TestContext:
    """Tests for Context state."""

    def test_background_context(self) -> None:
        """Test that the background context is live and has no deadline."""
        ctx = Context.background()

        assert ctx.done is False
        assert ctx.error() is None
        assert ctx.remaining() is None
        assert ctx.metadata == {}
        assert len(ctx.execution_id) > 0

    def test_unique_execution_ids(self) -> None:
        """Test that each root context gets a unique execution ID."""
        assert Context.background().execution_id != Context.background().execution_id

    def test_cancel(self) -> None:
        """Test cancelling a context."""
        ctx = Context.background().with_cancel()

        ctx.cancel()

        assert ctx.done is True
        assert isinstance(ctx.error(), ContextCancelledError)
        with pytest.raises(ContextCancelledError):
            ctx.raise_if_done()

    def test_cancel_is_idempotent(self) -> None:
        """Test that cancelling twice keeps the first error."""
        ctx = Context.background().with_cancel()

        ctx.cancel()
        first = ctx.error()
        ctx.cancel()

        assert ctx.error() is first

    def test_parent_cancellation_reaches_children(self) -> None:
        """Test that cancelling a parent cancels its descendants."""
        parent = Context.background().with_cancel()
        child = parent.with_cancel()
        grandchild = child.with_timeout(60)

        parent.cancel()

        assert child.done is True
        assert grandchild.done is True

    def test_child_cancellation_does_not_reach_parent(self) -> None:
        """Test that cancelling a child leaves the parent live."""
        parent = Context.background().with_cancel()
        child = parent.with_cancel()

        child.cancel()

        assert child.done is True
        assert parent.done is False

    def test_child_of_cancelled_parent_is_done(self) -> None:
        """Test deriving from an already cancelled context."""
        parent = Context.background().with_cancel()
        parent.cancel()

        assert parent.with_cancel().done is True

    def test_child_shares_execution_id_and_metadata(self) -> None:
        """Test that derived contexts belong to the same execution."""
        parent = Context.background()
        parent.metadata["key"] = "value"
        child = parent.with_timeout(10)

        assert child.execution_id == parent.execution_id
        assert child.metadata["key"] == "value"

    def test_expired_deadline(self) -> None:
        """Test that a zero timeout expires immediately."""
        ctx = Context.background().with_timeout(0)

        assert ctx.done is True
        assert isinstance(ctx.error(), DeadlineExceededError)
        assert ctx.remaining() == 0.0

    def test_child_deadline_capped_by_parent(self) -> None:
        """Test that a child cannot outlive its parent's deadline."""
        parent = Context.background().with_timeout(1)
        child = parent.with_timeout(100)

        assert child.deadline == parent.deadline

    def test_child_deadline_can_be_earlier(self) -> None:
        """Test that a child may expire before its parent."""
        parent = Context.background().with_timeout(100)
        child = parent.with_deadline(time.monotonic() + 1)

        assert child.deadline < parent.deadline

    def test_deadline_error_is_cancellation(self) -> None:
        """Test that deadline errors can be caught as cancellation errors."""
        assert issubclass(DeadlineExceededError, ContextCancelledError)


class TestContextRun:
    """Tests for Context.run."""

    @pytest.mark.asyncio
    async def test_run_returns_result(self) -> None:
        """Test that a fast awaitable completes normally."""
        async def work() -> str:
            return "done"

        ctx = Context.background()

        assert await ctx.run(work()) == "done"

    @pytest.mark.asyncio
    async def test_run_propagates_errors(self) -> None:
        """Test that errors from the awaitable are raised unchanged."""
        error = RuntimeError("remote failure")

        async def work() -> None:
            raise error

        with pytest.raises(RuntimeError) as exc_info:
            await Context.background().run(work())

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_run_aborts_on_deadline(self) -> None:
        """Test that a slow awaitable is cancelled when the deadline passes."""
        cancelled = asyncio.Event()

        async def slow() -> None:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        ctx = Context.background().with_timeout(0.05)
        start = time.monotonic()

        with pytest.raises(DeadlineExceededError):
            await ctx.run(slow())

        assert time.monotonic() - start < 1.0
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_run_aborts_on_cancel(self) -> None:
        """Test that cancelling the context from elsewhere aborts the awaitable."""
        ctx = Context.background().with_cancel()
        asyncio.get_running_loop().call_later(0.02, ctx.cancel)

        with pytest.raises(ContextCancelledError) as exc_info:
            await ctx.run(asyncio.sleep(10))

        assert not isinstance(exc_info.value, DeadlineExceededError)

    @pytest.mark.asyncio
    async def test_run_on_done_context_skips_work(self) -> None:
        """Test that nothing runs under an already cancelled context."""
        started = False

        async def work() -> None:
            nonlocal started
            started = True

        ctx = Context.background().with_cancel()
        ctx.cancel()

        with pytest.raises(ContextCancelledError):
            await ctx.run(work())

        assert started is False
