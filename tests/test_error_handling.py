"""Tests for the exception hierarchy and error propagation."""

import pytest

from agency.core.context import Context
from agency.core.models import Message, PipeConfig, TextMessage
from agency.core.pipe import Pipe
from agency.exceptions import (
    AgencyError,
    BindError,
    ContextCancelledError,
    DeadlineExceededError,
    InvalidStepResultError,
)


class TestExceptions:
    """Test exception construction."""

    def test_bind_error_creation(self):
        """Test creating BindError with different parameters."""
        error = BindError("Test error")
        assert str(error) == "Test error"
        assert error.template is None
        assert error.args_ == ()

        error = BindError("Bind failed", template="Hi %s", args=(1, 2))
        assert error.template == "Hi %s"
        assert error.args_ == (1, 2)

    def test_cancellation_errors(self):
        """Test default messages and execution IDs."""
        error = ContextCancelledError(execution_id="abc")
        assert str(error) == "context cancelled"
        assert error.execution_id == "abc"

        deadline = DeadlineExceededError()
        assert str(deadline) == "context deadline exceeded"
        assert deadline.execution_id is None

    def test_hierarchy(self):
        """Test that every error derives from AgencyError."""
        for error_type in (BindError, ContextCancelledError, DeadlineExceededError, InvalidStepResultError):
            assert issubclass(error_type, AgencyError)

        assert issubclass(BindError, ValueError)
        assert issubclass(InvalidStepResultError, TypeError)


class TestErrorPropagation:
    """Test that errors leave pipelines untouched."""

    @pytest.mark.asyncio
    async def test_bind_error_inside_step(self):
        """Test a template error raised by a step."""
        async def render(ctx: Context, message: Message, config: PipeConfig) -> Message:
            return TextMessage.user(config.prompt).bind(message.to_bytes().decode("utf-8"))

        pipe = Pipe(render).set_prompt("%s and %s")

        with pytest.raises(BindError):
            await pipe.execute(Context.background(), TextMessage.user("only one"))

    @pytest.mark.asyncio
    async def test_first_error_wins(self):
        """Test that the first failing stage determines the error."""
        first_error = KeyError("first")

        async def fail_first(ctx: Context, message: Message, config: PipeConfig) -> Message:
            raise first_error

        async def fail_second(ctx: Context, message: Message, config: PipeConfig) -> Message:
            raise AssertionError("second stage must not run")

        with pytest.raises(KeyError) as exc_info:
            await Pipe(fail_first).then(Pipe(fail_second)).execute(
                Context.background(), TextMessage.user("x")
            )

        assert exc_info.value is first_error
        assert exc_info.value.__cause__ is None
