"""
Anthropic Messages API adapter.

Anthropic takes the system prompt as a top-level ``system`` field rather than
a message, so system turns are pulled out of the history before sending.
"""

from __future__ import annotations

from chatrelay.adapters.base import JSON_HEADERS, OutboundRequest, ProviderAdapter
from chatrelay.extractor import extract_builtin
from chatrelay.models import ApiMessage


def split_system(history: list[ApiMessage]) -> tuple[str, list[dict]]:
    """
    Separate system turns from the conversation.
    The last system turn wins; the remaining turns keep their order.
    """
    system = ""
    turns: list[dict] = []
    for msg in history:
        if msg.role == "system":
            system = msg.content
            continue
        role = "assistant" if msg.role == "assistant" else "user"
        turns.append({"role": role, "content": msg.content})
    return system, turns


class AnthropicAdapter(ProviderAdapter):
    """x-api-key auth plus a pinned API version header."""

    def __init__(
        self,
        name: str,
        label: str,
        url: str,
        default_model: str = "",
        version: str = "2023-06-01",
        max_tokens: int = 1024,
    ):
        super().__init__(name, label, url, default_model)
        self.version = version
        self.max_tokens = max_tokens

    def build_request(
        self,
        history: list[ApiMessage],
        credential: str | None,
        model: str | None = None,
    ) -> OutboundRequest:
        system, turns = split_system(history)
        body = {
            "model": self.model_for(model),
            "max_tokens": self.max_tokens,
            "messages": turns,
        }
        if system:
            body["system"] = system

        headers = dict(JSON_HEADERS)
        headers["x-api-key"] = credential or ""
        headers["anthropic-version"] = self.version
        return OutboundRequest(url=self.url, headers=headers, body=body)

    def extract(self, data) -> str:
        return extract_builtin(self.name, data)
