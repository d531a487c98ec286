from .base import ChatSession, LLMProvider
from .factory import create_llm_provider
from .models import (
    ChatMessage,
    ModelChunk,
    StreamingResponse,
    TextFragment,
    ToolCallFragment,
    ToolSpec,
)
from .providers import AnthropicProvider, DeepSeekProvider, GeminiProvider, OpenAIProvider

__all__ = [
    "ChatSession",
    "LLMProvider",
    "create_llm_provider",
    "ChatMessage",
    "ModelChunk",
    "StreamingResponse",
    "TextFragment",
    "ToolCallFragment",
    "ToolSpec",
    "AnthropicProvider",
    "DeepSeekProvider",
    "GeminiProvider",
    "OpenAIProvider",
]
