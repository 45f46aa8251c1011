"""
Relay: the single entry point between the chat client and the providers.

Validates the inbound body, picks an adapter, dispatches the call, extracts
the reply text, and converts every failure into the `{error}` envelope.
The relay keeps no state between requests.
"""

from __future__ import annotations

import logging

from chatrelay.adapters.registry import ProviderRegistry
from chatrelay.dispatcher import DEFAULT_TIMEOUT, dispatch
from chatrelay.errors import ExtractionError, RelayError, ValidationError
from chatrelay.models import ApiMessage, CustomApiConfig

logger = logging.getLogger(__name__)


def parse_messages(raw) -> list[ApiMessage]:
    """Map client chat bubbles ({sender, text}) onto provider turns."""
    if not isinstance(raw, list):
        raise ValidationError("messages must be a list")
    history: list[ApiMessage] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict) or not isinstance(item.get("text"), str):
            raise ValidationError(f"messages[{i}] must be an object with a text string")
        history.append(ApiMessage.from_chat(item.get("sender", ""), item["text"]))
    return history


def parse_custom_config(raw, provider: str) -> CustomApiConfig | None:
    """
    The custom config is only used when its id names the provider; any other
    config riding along in the body is ignored unvalidated.
    """
    if not isinstance(raw, dict) or raw.get("id") != provider:
        return None
    if not isinstance(raw.get("endpoint"), str):
        raise ValidationError("customApiConfig requires a string endpoint")
    return CustomApiConfig.from_dict(raw)


class Relay:
    """Stateless provider relay."""

    def __init__(self, registry: ProviderRegistry, timeout: float = DEFAULT_TIMEOUT):
        self.registry = registry
        self.timeout = timeout

    async def handle_chat(self, body) -> tuple[int, dict]:
        """
        Process one POST /chat body.
        Returns (status_code, payload); never raises.
        """
        try:
            return 200, await self._chat(body)
        except ValidationError as e:
            logger.info("Rejected chat request: %s", e)
            return e.status_code, {"error": str(e)}
        except RelayError as e:
            logger.error("Chat relay failed: %s", e)
            return 500, {"error": str(e)}
        except Exception as e:
            logger.exception("Unexpected relay failure")
            return 500, {"error": str(e) or "An internal server error occurred"}

    async def _chat(self, body) -> dict:
        if not isinstance(body, dict):
            raise ValidationError("Invalid JSON body")

        provider = body.get("provider")
        messages = body.get("messages")
        api_key = body.get("apiKey")
        model = body.get("model") or None

        if not provider or messages is None:
            raise ValidationError("Missing provider or messages")
        if not body.get("customApiConfig") and not api_key:
            raise ValidationError("Missing apiKey")
        if not isinstance(provider, str):
            raise ValidationError("provider must be a string")
        if model is not None and not isinstance(model, str):
            raise ValidationError("model must be a string")
        if api_key is not None and not isinstance(api_key, str):
            raise ValidationError("apiKey must be a string")

        history = parse_messages(messages)
        custom = parse_custom_config(body.get("customApiConfig"), provider)

        is_custom = custom is not None
        if not is_custom and not api_key:
            raise ValidationError("Provider configuration error")

        adapter = self.registry.resolve(provider, custom)
        if adapter is None:
            raise ValidationError("Unsupported or misconfigured AI provider")

        raw = await dispatch(
            adapter,
            history,
            credential=None if is_custom else api_key,
            model=model,
            timeout=self.timeout,
        )

        try:
            text = adapter.extract(raw)
        except ExtractionError as e:
            logger.warning("%s", e)
            text = e.placeholder

        return {"aiResponse": text, "rawResponse": raw}
