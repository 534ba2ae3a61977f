"""Pipe: the composable building block of agency pipelines."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..exceptions import InvalidStepResultError
from .context import Context
from .models import BaseMessage, Message, PipeConfig, TextMessage

logger = logging.getLogger(__name__)

# Async function doing the actual work of a pipe
StepFunc = Callable[[Context, Message, PipeConfig], Awaitable[Message]]


class Pipe:
    """A unit of work turning one message into another.

    A pipe wraps a step function and owns the PipeConfig that step reads.
    Pipes are composed with ``then`` into pipelines, which are pipes again.

    Configuration setters return the pipe itself so a pipe can be configured
    and executed in one expression::

        result = await factory.text_to_text(params).set_prompt("...").execute(ctx, msg)

    The configuration is plain shared state: changing it while the pipe is
    executing elsewhere is not synchronized.
    """

    def __init__(
        self,
        step: StepFunc,
        config: Optional[PipeConfig] = None,
        name: Optional[str] = None,
    ):
        """Initialize the pipe.

        Args:
            step: Async function ``(ctx, message, config) -> message``
            config: Initial configuration (a fresh PipeConfig by default)
            name: Human-readable name (defaults to the step function's name)
        """
        self._step = step
        self.config = config if config is not None else PipeConfig()
        self.name = name or getattr(step, "__name__", type(step).__name__)
        self._stages: tuple["Pipe", ...] = (self,)
        self._logger = logger.getChild("Pipe")

    @property
    def stages(self) -> tuple["Pipe", ...]:
        """Leaf pipes in execution order (just this pipe unless it is a chain)."""
        return self._stages

    async def execute(self, ctx: Context, message: Message) -> Message:
        """Execute the pipe(line).

        Args:
            ctx: Execution context; forwarded unchanged to every stage
            message: Input message

        Returns:
            Output message produced by the step function

        Raises:
            ContextCancelledError: If ``ctx`` is already done; the step is not invoked
            InvalidStepResultError: If the step returns something that is not a message
            Exception: Whatever the step function raises, unchanged
        """
        ctx.raise_if_done()

        config = self.config.snapshot()
        self._logger.debug(f"[{ctx.execution_id}] Executing pipe {self.name!r}")
        try:
            result = await self._step(ctx, message, config)
        except Exception as e:
            self._logger.debug(f"[{ctx.execution_id}] Pipe {self.name!r} failed: {e!r}")
            raise

        if not isinstance(result, BaseMessage):
            raise InvalidStepResultError(
                f"Pipe {self.name!r} returned {type(result).__name__}, expected a message",
                pipe_name=self.name,
            )

        self._logger.debug(f"[{ctx.execution_id}] Pipe {self.name!r} produced {type(result).__name__}")
        return result

    def execute_sync(self, message: Message, ctx: Optional[Context] = None) -> Message:
        """Blocking variant of ``execute`` for scripts without a running event loop.

        Args:
            message: Input message
            ctx: Execution context (a fresh background context by default)

        Returns:
            Output message
        """
        return asyncio.run(self.execute(ctx or Context.background(), message))

    def then(self, next_pipe: "Pipe") -> "Pipe":
        """Return a new pipe running this pipe, then ``next_pipe`` on its output.

        If this pipe fails, its error is raised as is and ``next_pipe`` never runs.
        The chain has no configuration of its own: its setters raise TypeError,
        and each stage keeps reading its own PipeConfig.

        Args:
            next_pipe: Pipe receiving this pipe's output

        Returns:
            New pipe wrapping both
        """
        first = self

        async def chain(ctx: Context, message: Message, _config: PipeConfig) -> Message:
            intermediate = await first.execute(ctx, message)
            return await next_pipe.execute(ctx, intermediate)

        chained = Pipe(chain, name=f"{self.name} -> {next_pipe.name}")
        chained._stages = self._stages + next_pipe._stages
        return chained

    # Fluent configuration

    def _own_config(self) -> PipeConfig:
        if len(self._stages) > 1:
            raise TypeError(
                f"Pipe {self.name!r} is a chain and reads no configuration; configure its stages instead"
            )
        return self.config

    def set_prompt(self, prompt: str) -> "Pipe":
        """Set the prompt read by the step function."""
        self._own_config().prompt = prompt
        return self

    def set_messages(self, messages: list[TextMessage]) -> "Pipe":
        """Set the conversation history sent before the input message."""
        self._own_config().messages = messages
        return self

    def set_model(self, model: str) -> "Pipe":
        """Override the adapter's model name."""
        self._own_config().model = model
        return self

    def set_temperature(self, temperature: float) -> "Pipe":
        self._own_config().temperature = temperature
        return self

    def set_max_tokens(self, max_tokens: int) -> "Pipe":
        self._own_config().max_tokens = max_tokens
        return self

    def configure(self, **kwargs: Any) -> "Pipe":
        """Set several configuration fields at once.

        Unknown keyword names are rejected; use the ``extra`` field for
        adapter-specific parameters.

        Raises:
            ValueError: If a keyword is not a PipeConfig field
            TypeError: If the pipe is a chain
        """
        unknown = set(kwargs) - set(PipeConfig.model_fields)
        if unknown:
            raise ValueError(f"Unknown pipe configuration fields: {', '.join(sorted(unknown))}")

        config = self._own_config()
        for field, value in kwargs.items():
            setattr(config, field, value)
        return self

    def __repr__(self) -> str:
        return f"Pipe(name={self.name!r}, stages={len(self._stages)})"
