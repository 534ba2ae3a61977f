"""Core framework components."""

from .context import Context
from .models import (
    BaseMessage,
    ImageMessage,
    Message,
    MessageRole,
    PipeConfig,
    SpeechMessage,
    TextMessage,
)
from .pipe import Pipe, StepFunc

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
]
