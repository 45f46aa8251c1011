"""
OpenAI-style chat completions adapter.

Serves every provider that takes a bearer token and a
``{model, messages}`` body and answers with ``choices[0].message.content``:
- OpenAI
- DeepSeek
"""

from __future__ import annotations

from chatrelay.adapters.base import JSON_HEADERS, OutboundRequest, ProviderAdapter
from chatrelay.extractor import extract_builtin
from chatrelay.models import ApiMessage


class OpenAIStyleAdapter(ProviderAdapter):
    """Bearer auth, fixed URL, messages passed through unchanged."""

    def build_request(
        self,
        history: list[ApiMessage],
        credential: str | None,
        model: str | None = None,
    ) -> OutboundRequest:
        headers = dict(JSON_HEADERS)
        headers["Authorization"] = f"Bearer {credential}"
        return OutboundRequest(
            url=self.url,
            headers=headers,
            body={
                "model": self.model_for(model),
                "messages": [m.to_dict() for m in history],
            },
        )

    def extract(self, data) -> str:
        return extract_builtin(self.name, data)
