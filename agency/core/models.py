"""Core data models: pipeline messages and per-pipe configuration."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from ..exceptions import BindError


class MessageRole(str, Enum):
    """Enumeration of roles a text message can carry."""

    USER = "user"
    SYSTEM = "system"
    ASSISTANT = "assistant"


class BaseMessage(BaseModel, ABC):
    """Payload flowing between pipes.

    Messages are immutable. Every variant can be serialized to raw bytes,
    which is the only operation pipes may rely on without knowing the variant.
    """

    model_config = {"frozen": True}

    @abstractmethod
    def to_bytes(self) -> bytes:
        """Serialize the message payload to bytes.

        Returns:
            The raw payload; identical on every call
        """
        pass

    def __bytes__(self) -> bytes:
        return self.to_bytes()


class TextMessage(BaseMessage):
    """Conversational text message.

    Attributes:
        role: The role of the message author
        content: The message text
    """

    kind: Literal["text"] = "text"
    role: MessageRole
    content: str

    @classmethod
    def user(cls, content: str) -> "TextMessage":
        """Create a message with the user role."""
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def system(cls, content: str) -> "TextMessage":
        """Create a message with the system role."""
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def assistant(cls, content: str) -> "TextMessage":
        """Create a message with the assistant role."""
        return cls(role=MessageRole.ASSISTANT, content=content)

    def to_bytes(self) -> bytes:
        return self.content.encode("utf-8")

    def bind(self, *args: Any) -> "TextMessage":
        """Use the content as a template and substitute ``%`` directives with ``args``.

        Placeholders are positional printf-style directives (``%s``, ``%d``,
        ``%.2f``, ``%%``), consumed in order.

        Args:
            *args: Values for the placeholders, in order

        Returns:
            New TextMessage with the same role and the formatted content

        Raises:
            BindError: If the number or type of arguments does not match the
                placeholders
        """
        try:
            content = self.content % args
        except (TypeError, ValueError) as e:
            raise BindError(
                f"Cannot bind {len(args)} argument(s) to template {self.content!r}: {e}",
                template=self.content,
                args=args,
            ) from e

        return self.model_copy(update={"content": content})


class ImageMessage(BaseMessage):
    """Binary image payload (PNG, JPEG, ...)."""

    kind: Literal["image"] = "image"
    data: bytes

    def to_bytes(self) -> bytes:
        return self.data


class SpeechMessage(BaseMessage):
    """Binary audio payload."""

    kind: Literal["speech"] = "speech"
    data: bytes

    def to_bytes(self) -> bytes:
        return self.data


Message = Annotated[
    Union[TextMessage, ImageMessage, SpeechMessage],
    Field(discriminator="kind"),
]


class PipeConfig(BaseModel):
    """Runtime configuration owned by a single pipe.

    Values are not validated on assignment; the adapter that reads them
    decides what is acceptable.

    Attributes:
        prompt: Instruction for the step (system prompt, transcription hint, ...)
        messages: Conversation history sent before the input message
        model: Model name overriding the adapter's default
        temperature: Sampling temperature
        max_tokens: Maximum tokens to generate
        extra: Adapter-specific parameters passed through untouched
    """

    prompt: str = ""
    messages: list[TextMessage] = Field(default_factory=list)
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    extra: dict[str, Any] = Field(default_factory=dict)

    def snapshot(self) -> "PipeConfig":
        """Copy of the current field values, handed to one execution."""
        return self.model_copy(
            update={"messages": list(self.messages), "extra": dict(self.extra)}
        )
