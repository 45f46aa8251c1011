"""
Response extraction — pull the assistant's reply text out of a provider body.

Each provider family has one structural rule. A rule returns the text or None;
`extract()` turns a miss into ExtractionError so the relay can fall back to a
placeholder while still handing the raw body back to the client.
"""

from __future__ import annotations

import logging
from typing import Callable

from chatrelay.errors import ExtractionError
from chatrelay.json_path import JsonValue, get_string

logger = logging.getLogger(__name__)

PARSE_FAILURE_TEXT = "Error: Could not parse AI response."
CUSTOM_MISMATCH_TEXT = "Error: Custom API response format mismatch."


def _first(value: JsonValue, key: str):
    """value[key][0] when value is an object and value[key] a non-empty list."""
    if not isinstance(value, dict):
        return None
    items = value.get(key)
    if isinstance(items, list) and items:
        return items[0]
    return None


def anthropic_text(data: JsonValue) -> str | None:
    """content[0].text"""
    item = _first(data, "content")
    if isinstance(item, dict) and isinstance(item.get("text"), str):
        return item["text"]
    return None


def openai_text(data: JsonValue) -> str | None:
    """choices[0].message.content (OpenAI, DeepSeek and most clones)."""
    choice = _first(data, "choices")
    if not isinstance(choice, dict):
        return None
    message = choice.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    return None


def gemini_text(data: JsonValue) -> str | None:
    """candidates[0].content.parts[0].text"""
    candidate = _first(data, "candidates")
    if not isinstance(candidate, dict):
        return None
    part = _first(candidate.get("content"), "parts")
    if isinstance(part, dict) and isinstance(part.get("text"), str):
        return part["text"]
    return None


BUILTIN_RULES: dict[str, Callable[[JsonValue], str | None]] = {
    "anthropic": anthropic_text,
    "openai": openai_text,
    "deepseek": openai_text,
    "gemini": gemini_text,
}

# Shapes tried, in order, when a custom endpoint has no usable responsePath.
CUSTOM_FALLBACKS: tuple[Callable[[JsonValue], str | None], ...] = (
    openai_text,
    anthropic_text,
)


def extract_builtin(provider: str, data: JsonValue) -> str:
    rule = BUILTIN_RULES[provider]
    text = rule(data)
    if text is None:
        raise ExtractionError(provider, data, PARSE_FAILURE_TEXT)
    return text


def extract_custom(data: JsonValue, response_path: str | None = None, name: str = "custom") -> str:
    """
    Custom endpoints: try the configured dotted path, then the common shapes.
    """
    if response_path:
        text = get_string(data, response_path)
        if text is not None:
            return text
        logger.warning(
            "Custom API '%s': response path '%s' did not yield a string, trying common shapes",
            name, response_path,
        )

    for rule in CUSTOM_FALLBACKS:
        text = rule(data)
        if text is not None:
            return text

    if response_path:
        raise ExtractionError(
            name, data, CUSTOM_MISMATCH_TEXT,
            reason=f"path '{response_path}' not found",
        )
    raise ExtractionError(name, data, PARSE_FAILURE_TEXT)


def extract(provider: str, data: JsonValue, custom_response_path: str | None = None) -> str:
    """
    Return the reply text for `provider`. Any identifier that is not a
    built-in provider is treated as a custom endpoint.
    """
    if provider in BUILTIN_RULES:
        return extract_builtin(provider, data)
    return extract_custom(data, custom_response_path, name=provider)
