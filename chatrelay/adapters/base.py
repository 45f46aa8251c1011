"""
Base adapter abstraction.
Every provider is a pair of rules: how to build the outbound request and how
to read the reply back out. The dispatcher treats all adapters uniformly.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field

from chatrelay.json_path import JsonValue
from chatrelay.models import ApiMessage

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass
class OutboundRequest:
    """Everything needed to POST one chat turn. Built fresh on every call."""
    url: str
    headers: dict[str, str]
    body: dict
    params: dict[str, str] = field(default_factory=dict)


class ProviderAdapter(abc.ABC):
    """
    Abstract base for provider adapters.
    Request building must be pure: same inputs, same OutboundRequest.
    """

    # Custom endpoints may answer errors with plain text; built-ins never do.
    raw_text_errors = False

    def __init__(self, name: str, label: str, url: str, default_model: str = ""):
        self.name = name
        self.label = label
        self.url = url
        self.default_model = default_model

    @property
    def target(self) -> str:
        """Human-readable request description used in error messages."""
        return f"{self.label} API request"

    @abc.abstractmethod
    def build_request(
        self,
        history: list[ApiMessage],
        credential: str | None,
        model: str | None = None,
    ) -> OutboundRequest:
        """Translate a provider-agnostic history into this provider's request."""
        ...

    @abc.abstractmethod
    def extract(self, data: JsonValue) -> str:
        """Return the reply text or raise ExtractionError."""
        ...

    def model_for(self, model: str | None) -> str:
        return model or self.default_model

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} url={self.url!r}>"
