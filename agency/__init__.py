"""Agency - composable pipelines over generative AI models."""

__version__ = "0.1.0"

from .core.context import Context
from .core.models import (
    BaseMessage,
    ImageMessage,
    Message,
    MessageRole,
    PipeConfig,
    SpeechMessage,
    TextMessage,
)
from .core.pipe import Pipe, StepFunc
from .exceptions import (
    AgencyError,
    BindError,
    ContextCancelledError,
    DeadlineExceededError,
    InvalidStepResultError,
)

__all__ = [
    "Message",
    "BaseMessage",
    "MessageRole",
    "TextMessage",
    "ImageMessage",
    "SpeechMessage",
    "PipeConfig",
    "Context",
    "Pipe",
    "StepFunc",
    "AgencyError",
    "BindError",
    "ContextCancelledError",
    "DeadlineExceededError",
    "InvalidStepResultError",
]
