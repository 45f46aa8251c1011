"""
Client-side application state.

AppState is the one object that owns the session list, the current session,
the provider credentials and the custom endpoint configs. Every mutation
goes through a method here and is persisted to the store straight away.
If a write fails the in-memory state carries on and the error is logged;
the next load will not see that change.
"""

from __future__ import annotations

import logging
import sqlite3
from uuid import uuid4

from chatrelay.errors import ValidationError
from chatrelay.models import (
    PROVIDER_KEYS,
    ChatMessage,
    ChatSession,
    CustomApiConfig,
    now_ms,
)
from chatrelay.storage.sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)

CURRENT_SESSION_KEY = "current_session_id"


class AppState:
    """Sessions, credentials and custom configs for one user."""

    def __init__(self, store: SQLiteStore | None = None):
        self.store = store
        self.sessions: list[ChatSession] = []
        self.current_session_id: str | None = None
        self.credentials: dict[str, str] = {}
        self.custom_configs: list[CustomApiConfig] = []

    @classmethod
    def load(cls, store: SQLiteStore) -> AppState:
        """
        Load everything from the store. The stored current session is kept
        if it still exists, otherwise the first session is selected; an
        empty store gets a fresh session.
        """
        state = cls(store)
        state.sessions = store.load_sessions()
        state.credentials = store.load_credentials()
        state.custom_configs = store.load_custom_configs()

        stored_current = store.get_setting(CURRENT_SESSION_KEY)
        if stored_current and state.get_session(stored_current):
            state.current_session_id = stored_current
        elif state.sessions:
            state.current_session_id = state.sessions[0].id

        if not state.sessions:
            state.create_session()
        return state

    def _persist(self, action: str, method: str, *args):
        if self.store is None:
            return
        try:
            getattr(self.store, method)(*args)
        except sqlite3.Error as e:
            logger.error("Persisting %s failed, state will not survive a reload: %s", action, e)

    # ─ Sessions ───────────────────────────────────────────────────────────

    def get_session(self, session_id: str) -> ChatSession | None:
        for s in self.sessions:
            if s.id == session_id:
                return s
        return None

    @property
    def current_session(self) -> ChatSession | None:
        if self.current_session_id is None:
            return None
        return self.get_session(self.current_session_id)

    def create_session(self) -> ChatSession:
        """Append a new empty session named "Chat <n>" and make it current."""
        session = ChatSession(name=f"Chat {len(self.sessions) + 1}")
        self.sessions.append(session)
        self._persist("session", "save_session", session)
        self.set_current_session(session.id)
        logger.info("Created session %s (%s)", session.id, session.name)
        return session

    def set_current_session(self, session_id: str | None):
        if session_id is not None and self.get_session(session_id) is None:
            raise KeyError(f"Unknown session: {session_id}")
        self.current_session_id = session_id
        self._persist("current session", "set_setting",
                      CURRENT_SESSION_KEY, session_id)

    def append_message(self, session_id: str, message: ChatMessage):
        session = self.get_session(session_id)
        if session is None:
            raise KeyError(f"Unknown session: {session_id}")
        session.messages.append(message)
        self._persist("message", "append_message", session_id, message)

    # ─ Credentials ────────────────────────────────────────────────────────

    def set_credential(self, provider: str, api_key: str):
        """
        Store a key. A provider id that names a custom config updates that
        config's apiKey instead of the built-in map.
        """
        for cfg in self.custom_configs:
            if cfg.id == provider:
                cfg.api_key = api_key
                self._persist("custom config", "save_custom_config", cfg)
                return
        if provider not in PROVIDER_KEYS:
            raise ValueError(f"Unknown provider: {provider}")
        self.credentials[provider] = api_key
        self._persist("credential", "set_credential", provider, api_key)

    def get_credential(self, provider: str) -> str | None:
        """Custom config key (matched by id or name) first, then the built-in map."""
        cfg = self.get_custom_config(provider)
        if cfg is not None:
            return cfg.api_key
        return self.credentials.get(provider)

    # ─ Custom endpoint configs ────────────────────────────────────────────

    def add_custom_config(self, **fields) -> CustomApiConfig:
        """Create a config with a fresh id; `fields` are CustomApiConfig attributes."""
        fields.pop("id", None)
        config = CustomApiConfig(id=f"custom-{now_ms()}-{uuid4().hex[:7]}", **fields)
        self.custom_configs.append(config)
        self._persist("custom config", "save_custom_config", config)
        logger.info("Added custom API '%s' (%s)", config.name, config.id)
        return config

    def update_custom_config(self, config: CustomApiConfig):
        for i, existing in enumerate(self.custom_configs):
            if existing.id == config.id:
                self.custom_configs[i] = config
                self._persist("custom config", "save_custom_config", config)
                return
        raise KeyError(f"Unknown custom API config: {config.id}")

    def remove_custom_config(self, config_id: str):
        self.custom_configs = [c for c in self.custom_configs if c.id != config_id]
        self._persist("custom config removal", "delete_custom_config", config_id)

    def get_custom_config(self, id_or_name: str) -> CustomApiConfig | None:
        """First config whose id or name matches. Names are not unique."""
        for cfg in self.custom_configs:
            if cfg.id == id_or_name or cfg.name == id_or_name:
                return cfg
        return None

    # ─ Relay payload ──────────────────────────────────────────────────────

    def build_chat_request(
        self,
        provider: str,
        model: str | None = None,
        session_id: str | None = None,
    ) -> dict:
        """
        Assemble the POST /chat body for a session's full history.
        A custom config travels whole; a built-in provider sends its key.
        """
        session = self.get_session(session_id) if session_id else self.current_session
        if session is None:
            raise KeyError(f"Unknown session: {session_id or self.current_session_id}")

        payload: dict = {
            "provider": provider,
            "messages": [{"sender": m.sender, "text": m.text} for m in session.messages],
        }
        api_key = self.get_credential(provider)
        if not api_key:
            raise ValidationError(f"API key for {provider} is not configured.")

        custom = self.get_custom_config(provider)
        if custom is not None:
            payload["provider"] = custom.id
            payload["customApiConfig"] = custom.to_dict()
        else:
            payload["apiKey"] = api_key
        if model:
            payload["model"] = model
        return payload
