"""
Provider adapters for chatrelay.
One adapter per wire shape; the registry maps provider ids onto them.
"""
from chatrelay.adapters.base import OutboundRequest, ProviderAdapter
from chatrelay.adapters.openai_style import OpenAIStyleAdapter
from chatrelay.adapters.anthropic import AnthropicAdapter
from chatrelay.adapters.gemini import GeminiAdapter
from chatrelay.adapters.custom import CustomAdapter
from chatrelay.adapters.registry import ProviderRegistry

__all__ = [
    "OutboundRequest",
    "ProviderAdapter",
    "OpenAIStyleAdapter",
    "AnthropicAdapter",
    "GeminiAdapter",
    "CustomAdapter",
    "ProviderRegistry",
]
