"""
Provider registry — provider id → adapter.

Built-in adapters are created once from PROVIDER_DEFAULTS, with any values in
the `providers:` config section layered on top. Custom adapters are never
registered; `resolve()` builds one per request from the inbound config.
Adding a provider is a new entry in PROVIDER_DEFAULTS (and an adapter class
if its wire shape is new).
"""

from __future__ import annotations

import logging

from chatrelay.adapters.anthropic import AnthropicAdapter
from chatrelay.adapters.base import ProviderAdapter
from chatrelay.adapters.custom import CustomAdapter
from chatrelay.adapters.gemini import GeminiAdapter
from chatrelay.adapters.openai_style import OpenAIStyleAdapter
from chatrelay.models import RESERVED_PROVIDERS, CustomApiConfig

logger = logging.getLogger(__name__)

# Adapter kind → class
ADAPTER_KINDS: dict[str, type[ProviderAdapter]] = {
    "openai_style": OpenAIStyleAdapter,
    "anthropic": AnthropicAdapter,
    "gemini": GeminiAdapter,
}

PROVIDER_DEFAULTS: dict[str, dict] = {
    "deepseek": {
        "kind": "openai_style",
        "label": "DeepSeek",
        "url": "https://api.deepseek.com/chat/completions",
        "default_model": "deepseek-chat",
    },
    "openai": {
        "kind": "openai_style",
        "label": "OpenAI",
        "url": "https://api.openai.com/v1/chat/completions",
        "default_model": "gpt-3.5-turbo",
    },
    "anthropic": {
        "kind": "anthropic",
        "label": "Anthropic",
        "url": "https://api.anthropic.com/v1/messages",
        "default_model": "claude-3-sonnet-20240229",
        "version": "2023-06-01",
        "max_tokens": 1024,
    },
    "gemini": {
        "kind": "gemini",
        "label": "Gemini",
        "url": "https://generativelanguage.googleapis.com/v1beta/models",
        "default_model": "gemini-1.5-flash-latest",
    },
}


class ProviderRegistry:
    """Holds the built-in adapters and resolves the adapter for a request."""

    def __init__(self, providers_config: dict | None = None):
        overrides = providers_config or {}
        self.adapters: dict[str, ProviderAdapter] = {}
        for name, defaults in PROVIDER_DEFAULTS.items():
            cfg = {**defaults, **(overrides.get(name) or {})}
            self.adapters[name] = self._create_adapter(name, cfg)

        unknown = set(overrides) - set(PROVIDER_DEFAULTS)
        for name in sorted(unknown):
            logger.warning("Ignoring config for unknown provider '%s'", name)

        logger.info("Provider registry initialized: %s", ", ".join(self.adapters))

    @staticmethod
    def _create_adapter(name: str, cfg: dict) -> ProviderAdapter:
        """Instantiate an adapter from a merged config dict."""
        cls = ADAPTER_KINDS[cfg["kind"]]
        kwargs = {
            "name": name,
            "label": cfg.get("label", name),
            "url": cfg["url"],
            "default_model": cfg.get("default_model", ""),
        }
        if cls is AnthropicAdapter:
            kwargs["version"] = cfg.get("version", "2023-06-01")
            kwargs["max_tokens"] = int(cfg.get("max_tokens", 1024))
        return cls(**kwargs)

    def get(self, name: str) -> ProviderAdapter | None:
        return self.adapters.get(name)

    def resolve(
        self,
        provider: str,
        custom_config: CustomApiConfig | None = None,
    ) -> ProviderAdapter | None:
        """
        Pick the adapter for a relay request.
        The custom config wins only when its id equals the provider id.
        """
        if custom_config is not None and custom_config.id == provider:
            if provider in self.adapters:
                logger.warning(
                    "Custom API config id '%s' collides with a built-in provider; using the custom endpoint",
                    provider,
                )
            return CustomAdapter(custom_config)
        return self.adapters.get(provider)

    def describe(self) -> dict:
        """Public listing for the providers endpoint."""
        return {
            "providers": [
                {
                    "id": a.name,
                    "label": a.label,
                    "default_model": a.default_model,
                }
                for a in self.adapters.values()
            ],
            "reserved": list(RESERVED_PROVIDERS),
        }
