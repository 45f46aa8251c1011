"""
Custom endpoint adapter, built on the fly from a user's CustomApiConfig.

Header name, key prefix, body field names and the reply path all come from
the config; anything unset falls back to the OpenAI conventions.
"""

from __future__ import annotations

import logging

from chatrelay.adapters.base import JSON_HEADERS, OutboundRequest, ProviderAdapter
from chatrelay.extractor import extract_custom
from chatrelay.models import ApiMessage, CustomApiConfig

logger = logging.getLogger(__name__)

DEFAULT_MODEL_PARAM = "model"
DEFAULT_MESSAGES_PARAM = "messages"


class CustomAdapter(ProviderAdapter):
    """Adapter for one user-defined endpoint."""

    raw_text_errors = True

    def __init__(self, config: CustomApiConfig):
        super().__init__(
            name=config.id,
            label="Custom",
            url=config.endpoint,
            default_model="",
        )
        self.config = config
        if config.api_key and config.api_key_header_name == "":
            logger.warning(
                "Custom API '%s' has an empty apiKeyHeaderName; "
                "requests to it will be rejected before they are sent",
                config.name or config.id,
            )

    @property
    def target(self) -> str:
        return f"Custom API request to {self.config.name or self.config.id}"

    def _auth_headers(self) -> dict[str, str]:
        cfg = self.config
        if not cfg.api_key:
            return {}
        # An explicitly configured header name is honoured even when empty.
        if cfg.api_key_header_name is not None:
            return {cfg.api_key_header_name: f"{cfg.api_key_prefix or ''}{cfg.api_key}"}
        return {"Authorization": f"Bearer {cfg.api_key}"}

    def build_request(
        self,
        history: list[ApiMessage],
        credential: str | None = None,
        model: str | None = None,
    ) -> OutboundRequest:
        cfg = self.config
        headers = dict(JSON_HEADERS)
        headers.update(self._auth_headers())

        body = {
            cfg.messages_param_name or DEFAULT_MESSAGES_PARAM: [m.to_dict() for m in history],
        }
        if model:
            body[cfg.model_param_name or DEFAULT_MODEL_PARAM] = model

        return OutboundRequest(url=cfg.endpoint, headers=headers, body=body)

    def extract(self, data) -> str:
        return extract_custom(
            data,
            self.config.response_path,
            name=self.config.name or self.config.id,
        )
