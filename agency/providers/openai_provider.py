"""OpenAI adapter: pipes backed by the official OpenAI SDK."""

import base64
import logging
import os
from typing import Any, Awaitable, Callable, Optional

import openai
from dotenv import load_dotenv
from openai import AsyncOpenAI
from openai.types.chat.chat_completion_message_param import ChatCompletionMessageParam
from pydantic import BaseModel, Field

from ..core.context import Context
from ..core.models import (
    ImageMessage,
    Message,
    MessageRole,
    PipeConfig,
    SpeechMessage,
    TextMessage,
)
from ..core.pipe import Pipe
from ..exceptions import AgencyError, ContextCancelledError

logger = logging.getLogger(__name__)


class OpenAIProviderError(AgencyError):
    """Base exception for OpenAI provider errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)


class OpenAIRateLimitError(OpenAIProviderError):
    """Exception raised when OpenAI rate limits are exceeded."""
    pass


class OpenAIAPIError(OpenAIProviderError):
    """Exception raised for OpenAI API errors."""
    pass


class OpenAIParams(BaseModel):
    """Client configuration for the OpenAI factory.

    Attributes:
        key: API key (the SDK falls back to OPENAI_API_KEY when None)
        base_url: Base URL for OpenAI-compatible endpoints
        organization: OpenAI organization ID
        project: OpenAI project ID
        timeout: Request timeout in seconds
        max_retries: Retry attempts performed by the SDK itself
    """

    key: Optional[str] = None
    base_url: Optional[str] = None
    organization: Optional[str] = None
    project: Optional[str] = None
    timeout: float = Field(30.0, gt=0)
    max_retries: int = Field(3, ge=0)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "OpenAIParams":
        """Build params from environment variables.

        Args:
            dotenv: Load a ``.env`` file into the environment first

        Returns:
            OpenAIParams read from OPENAI_API_KEY, OPENAI_BASE_URL,
            OPENAI_ORG_ID and OPENAI_PROJECT_ID
        """
        if dotenv:
            load_dotenv()

        return cls(
            key=os.getenv("OPENAI_API_KEY"),
            base_url=os.getenv("OPENAI_BASE_URL"),
            organization=os.getenv("OPENAI_ORG_ID"),
            project=os.getenv("OPENAI_PROJECT_ID"),
        )


class TextToTextParams(BaseModel):
    """Parameters for chat completion pipes."""

    model: str = "gpt-3.5-turbo"
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(None, gt=0)


class SpeechToTextParams(BaseModel):
    """Parameters for transcription pipes.

    Attributes:
        model: Transcription model
        language: ISO-639-1 language of the audio, if known
        filename: Upload name; its extension tells the API the audio format
    """

    model: str = "whisper-1"
    language: Optional[str] = None
    filename: str = "speech.ogg"


class TextToImageParams(BaseModel):
    """Parameters for image generation pipes."""

    model: str = "dall-e-2"
    size: str = "256x256"
    quality: Optional[str] = None
    style: Optional[str] = None


class TextToSpeechParams(BaseModel):
    """Parameters for speech synthesis pipes."""

    model: str = "tts-1"
    voice: str = "alloy"
    response_format: str = "mp3"
    speed: float = Field(1.0, ge=0.25, le=4.0)


def _message_text(message: Message) -> str:
    if isinstance(message, TextMessage):
        return message.content
    return message.to_bytes().decode("utf-8")


class OpenAIFactory:
    """Builds pipes for OpenAI text, speech and image capabilities.

    Each capability method returns a new Pipe; all pipes created by one factory
    share its client.
    """

    def __init__(self, params: Optional[OpenAIParams] = None):
        """Initialize the factory.

        Args:
            params: Client configuration (defaults read nothing from ``.env``;
                use ``OpenAIParams.from_env()`` for that)
        """
        self.params = params or OpenAIParams()
        self._logger = logger.getChild("OpenAIFactory")

        client_kwargs: dict[str, Any] = {
            "timeout": self.params.timeout,
            "max_retries": self.params.max_retries,
        }

        if self.params.key is not None:
            client_kwargs["api_key"] = self.params.key
        if self.params.base_url is not None:
            client_kwargs["base_url"] = self.params.base_url
        if self.params.organization is not None:
            client_kwargs["organization"] = self.params.organization
        if self.params.project is not None:
            client_kwargs["project"] = self.params.project

        self._client = AsyncOpenAI(**client_kwargs)

    async def __aenter__(self) -> "OpenAIFactory":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the OpenAI client."""
        await self._client.close()

    def _handle_openai_error(self, error: Exception) -> None:
        """Convert OpenAI SDK errors to provider-specific errors."""
        self._logger.warning(f"OpenAI call failed: {error!r}")
        if isinstance(error, openai.RateLimitError):
            raise OpenAIRateLimitError(
                f"Rate limit exceeded: {str(error)}", original_error=error
            ) from error
        elif isinstance(error, (openai.APIError, openai.OpenAIError)):
            raise OpenAIAPIError(
                f"OpenAI API error: {str(error)}", original_error=error
            ) from error
        else:
            raise OpenAIProviderError(
                f"Unexpected error: {str(error)}", original_error=error
            ) from error

    async def _call(
        self,
        ctx: Context,
        capability: str,
        operation: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Run a remote call under the context, mapping SDK failures."""
        self._logger.debug(f"[{ctx.execution_id}] Calling OpenAI {capability}")
        try:
            return await ctx.run(operation())
        except ContextCancelledError:
            raise
        except Exception as e:
            self._handle_openai_error(e)

    def _build_chat_messages(
        self, message: Message, cfg: PipeConfig
    ) -> list[ChatCompletionMessageParam]:
        """System prompt, then history, then the input as the user turn."""
        messages: list[ChatCompletionMessageParam] = []
        if cfg.prompt:
            messages.append({"role": MessageRole.SYSTEM.value, "content": cfg.prompt})
        for item in cfg.messages:
            messages.append({"role": MessageRole(item.role).value, "content": item.content})
        messages.append({"role": MessageRole.USER.value, "content": _message_text(message)})
        return messages

    def text_to_text(self, params: Optional[TextToTextParams] = None) -> Pipe:
        """Create a chat completion pipe producing an assistant text message."""
        params = params or TextToTextParams()

        async def text_to_text(ctx: Context, message: Message, cfg: PipeConfig) -> Message:
            request: dict[str, Any] = {
                "model": cfg.model or params.model,
                "messages": self._build_chat_messages(message, cfg),
            }
            temperature = cfg.temperature if cfg.temperature is not None else params.temperature
            if temperature is not None:
                request["temperature"] = temperature
            max_tokens = cfg.max_tokens if cfg.max_tokens is not None else params.max_tokens
            if max_tokens is not None:
                request["max_tokens"] = max_tokens
            request.update(cfg.extra)

            completion = await self._call(
                ctx, "chat.completions", lambda: self._client.chat.completions.create(**request)
            )
            content = completion.choices[0].message.content
            return TextMessage.assistant(content if content is not None else "")

        return Pipe(text_to_text, name="openai.text_to_text")

    def speech_to_text(self, params: Optional[SpeechToTextParams] = None) -> Pipe:
        """Create a transcription pipe; the config prompt is passed as a hint."""
        params = params or SpeechToTextParams()

        async def speech_to_text(ctx: Context, message: Message, cfg: PipeConfig) -> Message:
            request: dict[str, Any] = {
                "model": cfg.model or params.model,
                "file": (params.filename, message.to_bytes()),
            }
            if cfg.prompt:
                request["prompt"] = cfg.prompt
            if params.language is not None:
                request["language"] = params.language
            if cfg.temperature is not None:
                request["temperature"] = cfg.temperature
            request.update(cfg.extra)

            transcription = await self._call(
                ctx, "audio.transcriptions", lambda: self._client.audio.transcriptions.create(**request)
            )
            return TextMessage.assistant(transcription.text)

        return Pipe(speech_to_text, name="openai.speech_to_text")

    def text_to_image(self, params: Optional[TextToImageParams] = None) -> Pipe:
        """Create an image generation pipe producing a decoded image message."""
        params = params or TextToImageParams()

        async def text_to_image(ctx: Context, message: Message, cfg: PipeConfig) -> Message:
            prompt = _message_text(message)
            if cfg.prompt:
                prompt = f"{cfg.prompt}\n\n{prompt}"

            request: dict[str, Any] = {
                "model": cfg.model or params.model,
                "prompt": prompt,
                "size": params.size,
                "n": 1,
                "response_format": "b64_json",
            }
            if params.quality is not None:
                request["quality"] = params.quality
            if params.style is not None:
                request["style"] = params.style
            request.update(cfg.extra)

            response = await self._call(
                ctx, "images.generate", lambda: self._client.images.generate(**request)
            )
            return ImageMessage(data=base64.b64decode(response.data[0].b64_json))

        return Pipe(text_to_image, name="openai.text_to_image")

    def text_to_speech(self, params: Optional[TextToSpeechParams] = None) -> Pipe:
        """Create a speech synthesis pipe producing an audio message."""
        params = params or TextToSpeechParams()

        async def text_to_speech(ctx: Context, message: Message, cfg: PipeConfig) -> Message:
            request: dict[str, Any] = {
                "model": cfg.model or params.model,
                "voice": params.voice,
                "input": _message_text(message),
                "response_format": params.response_format,
                "speed": params.speed,
            }
            request.update(cfg.extra)

            response = await self._call(
                ctx, "audio.speech", lambda: self._client.audio.speech.create(**request)
            )
            return SpeechMessage(data=response.content)

        return Pipe(text_to_speech, name="openai.text_to_speech")

    @property
    def client_info(self) -> dict[str, Any]:
        """Get information about the underlying OpenAI client."""
        return {
            "base_url": str(self._client.base_url) if self._client.base_url else None,
            "organization": self._client.organization,
            "project": self._client.project,
            "timeout": self.params.timeout,
            "max_retries": self.params.max_retries,
        }
