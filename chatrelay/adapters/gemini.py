"""
Gemini generateContent adapter.
The API key travels as the ``key`` query parameter; the model is part of the URL.
"""

from __future__ import annotations

from chatrelay.adapters.base import JSON_HEADERS, OutboundRequest, ProviderAdapter
from chatrelay.extractor import extract_builtin
from chatrelay.models import ApiMessage

# Gemini only knows "user" and "model"; system prompts ride along as user turns.
ROLE_MAP = {
    "assistant": "model",
    "system": "user",
    "user": "user",
}


class GeminiAdapter(ProviderAdapter):
    """`url` is the models base, e.g. .../v1beta/models"""

    def endpoint(self, model: str) -> str:
        return f"{self.url.rstrip('/')}/{model}:generateContent"

    def build_request(
        self,
        history: list[ApiMessage],
        credential: str | None,
        model: str | None = None,
    ) -> OutboundRequest:
        contents = [
            {
                "role": ROLE_MAP.get(m.role, "user"),
                "parts": [{"text": m.content}],
            }
            for m in history
        ]
        return OutboundRequest(
            url=self.endpoint(self.model_for(model)),
            headers=dict(JSON_HEADERS),
            body={"contents": contents},
            params={"key": credential or ""},
        )

    def extract(self, data) -> str:
        return extract_builtin(self.name, data)
