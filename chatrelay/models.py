"""
Data models shared by the relay and the client-side state.
Wire dicts use the camelCase keys the browser client always spoke.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from uuid import uuid4

# Fixed credential keys. The last two are reserved: keys can be stored but
# no adapter exists for them yet.
BUILTIN_PROVIDERS = ("deepseek", "openai", "anthropic", "gemini")
RESERVED_PROVIDERS = ("replicate", "openrouter")
PROVIDER_KEYS = BUILTIN_PROVIDERS + RESERVED_PROVIDERS

SENDER_USER = "user"
SENDER_AI = "ai"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ChatMessage:
    """One chat bubble. Never mutated once appended to a session."""
    text: str
    sender: str                      # "user" or "ai"
    id: str = field(default_factory=lambda: f"msg-{uuid4().hex}")
    timestamp: int = field(default_factory=now_ms)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "sender": self.sender,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ChatMessage:
        return cls(
            id=data["id"],
            text=data.get("text", ""),
            sender=data.get("sender", SENDER_USER),
            timestamp=int(data.get("timestamp", 0)),
        )


@dataclass
class ChatSession:
    """An ordered, append-only list of messages."""
    name: str
    id: str = field(default_factory=lambda: f"session-{uuid4().hex[:12]}")
    messages: list[ChatMessage] = field(default_factory=list)
    created_at: int = field(default_factory=now_ms)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "messages": [m.to_dict() for m in self.messages],
            "createdAt": self.created_at,
        }


@dataclass
class ApiMessage:
    """Provider-agnostic turn: role is user, assistant or system."""
    role: str
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_chat(cls, sender: str, text: str) -> ApiMessage:
        # Anything that is not the user is the assistant; system turns are
        # only ever built programmatically.
        role = "user" if sender == SENDER_USER else "assistant"
        return cls(role=role, content=text)


@dataclass
class CustomApiConfig:
    """A user-defined HTTP endpoint that speaks some chat-completions dialect."""
    id: str
    name: str = ""
    endpoint: str = ""
    api_key: str = ""
    api_key_header_name: str | None = None
    api_key_prefix: str | None = None
    model_param_name: str | None = None
    messages_param_name: str | None = None
    response_path: str | None = None

    _WIRE_KEYS = {
        "id": "id",
        "name": "name",
        "endpoint": "endpoint",
        "api_key": "apiKey",
        "api_key_header_name": "apiKeyHeaderName",
        "api_key_prefix": "apiKeyPrefix",
        "model_param_name": "modelParamName",
        "messages_param_name": "messagesParamName",
        "response_path": "responsePath",
    }

    def to_dict(self) -> dict:
        """Export in wire form, leaving unset optional fields out."""
        out = {}
        for attr, key in self._WIRE_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                out[key] = value
        return out

    @classmethod
    def from_dict(cls, data: dict) -> CustomApiConfig:
        kwargs = {}
        for attr, key in cls._WIRE_KEYS.items():
            if key in data and data[key] is not None:
                kwargs[attr] = data[key]
        kwargs.setdefault("id", "")
        return cls(**kwargs)
