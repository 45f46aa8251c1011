"""
Relay client — the chat front end's side of POST /chat.

`send_turn()` is one user turn: append the user's message, post the whole
session to the relay, append the reply. Relay and credential failures never
raise; they come back as an assistant message starting with "Error:".
Naming a session that does not exist is a KeyError.
"""

from __future__ import annotations

import logging

import httpx

from chatrelay.errors import RelayError, ValidationError
from chatrelay.models import SENDER_AI, SENDER_USER, ChatMessage
from chatrelay.state import AppState

logger = logging.getLogger(__name__)

NO_REPLY_TEXT = "Error: No response text from AI"


class RelayClientError(RelayError):
    """The relay answered with an error envelope or could not be reached."""


class RelayClient:
    """Thin synchronous client for a running relay."""

    def __init__(self, base_url: str, timeout: float = 120.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def chat(self, payload: dict) -> dict:
        """POST one chat request; returns {aiResponse, rawResponse}."""
        try:
            resp = httpx.post(f"{self.base_url}/chat", json=payload, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise RelayClientError(f"Relay unreachable at {self.base_url}: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.status_code >= 400:
            error = data.get("error") if isinstance(data, dict) else None
            raise RelayClientError(error or f"HTTP error {resp.status_code}")
        if not isinstance(data, dict):
            raise RelayClientError("Relay returned an unexpected body")
        return data

    def health(self) -> dict:
        resp = httpx.get(f"{self.base_url}/health", timeout=5)
        resp.raise_for_status()
        return resp.json()


def send_turn(
    state: AppState,
    client: RelayClient,
    text: str,
    provider: str,
    model: str | None = None,
    session_id: str | None = None,
) -> ChatMessage:
    """
    Run one turn against `provider` and return the assistant's message.
    A named session must exist (KeyError otherwise); with no session named
    and none current, a new one is started.
    """
    if session_id:
        session = state.get_session(session_id)
        if session is None:
            raise KeyError(f"Unknown session: {session_id}")
    else:
        session = state.current_session or state.create_session()

    state.append_message(session.id, ChatMessage(text=text, sender=SENDER_USER))

    try:
        payload = state.build_chat_request(provider, model=model, session_id=session.id)
        data = client.chat(payload)
        reply_text = data.get("aiResponse") or NO_REPLY_TEXT
    except (ValidationError, RelayClientError) as e:
        logger.warning("Turn against '%s' failed: %s", provider, e)
        reply_text = f"Error: {e}"

    reply = ChatMessage(text=reply_text, sender=SENDER_AI)
    state.append_message(session.id, reply)
    return reply
