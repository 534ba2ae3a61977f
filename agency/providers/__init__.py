"""Provider adapters building pipes on top of remote model APIs."""

from .openai_provider import (
    OpenAIAPIError,
    OpenAIFactory,
    OpenAIParams,
    OpenAIProviderError,
    OpenAIRateLimitError,
    SpeechToTextParams,
    TextToImageParams,
    TextToSpeechParams,
    TextToTextParams,
)

__all__ = [
    "OpenAIFactory",
    "OpenAIParams",
    "TextToTextParams",
    "SpeechToTextParams",
    "TextToImageParams",
    "TextToSpeechParams",
    "OpenAIProviderError",
    "OpenAIRateLimitError",
    "OpenAIAPIError",
]
