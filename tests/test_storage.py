"""
Tests for SQLite storage.
Uses a temp database for each test.
"""

import pytest

from chatrelay.models import ChatMessage, ChatSession, CustomApiConfig
from chatrelay.storage.sqlite_store import SQLiteStore


@pytest.fixture
def store(tmp_path):
    """Create a fresh SQLite store for each test."""
    return SQLiteStore(str(tmp_path / "test.db"))


def test_store_and_load_session(store):
    session = ChatSession(name="Chat 1")
    store.save_session(session)
    store.append_message(session.id, ChatMessage(text="hello", sender="user"))
    store.append_message(session.id, ChatMessage(text="hi!", sender="ai"))

    loaded = store.load_sessions()
    assert len(loaded) == 1
    assert loaded[0].id == session.id
    assert loaded[0].name == "Chat 1"
    assert [m.text for m in loaded[0].messages] == ["hello", "hi!"]
    assert [m.sender for m in loaded[0].messages] == ["user", "ai"]


def test_messages_keep_append_order_with_equal_timestamps(store):
    session = ChatSession(name="Chat 1")
    store.save_session(session)
    for text in ("a", "b", "c"):
        store.append_message(session.id, ChatMessage(text=text, sender="user", timestamp=1))
    assert [m.text for m in store.load_sessions()[0].messages] == ["a", "b", "c"]


def test_sessions_in_creation_order(store):
    store.save_session(ChatSession(name="Second", created_at=200))
    store.save_session(ChatSession(name="First", created_at=100))
    assert [s.name for s in store.load_sessions()] == ["First", "Second"]


def test_save_session_is_idempotent(store):
    session = ChatSession(name="Chat 1")
    store.save_session(session)
    store.save_session(session)
    assert len(store.load_sessions()) == 1


def test_credentials(store):
    store.set_credential("openai", "sk-1")
    store.set_credential("openai", "sk-2")
    store.set_credential("gemini", "g")
    assert store.load_credentials() == {"openai": "sk-2", "gemini": "g"}


def test_custom_configs_keep_order_on_update(store):
    a = CustomApiConfig(id="a", name="A", endpoint="http://a")
    b = CustomApiConfig(id="b", name="B", endpoint="http://b", response_path="out.text")
    store.save_custom_config(a)
    store.save_custom_config(b)
    a.api_key = "new"
    store.save_custom_config(a)

    loaded = store.load_custom_configs()
    assert [c.id for c in loaded] == ["a", "b"]
    assert loaded[0].api_key == "new"
    assert loaded[1].response_path == "out.text"
    assert loaded[0].api_key_header_name is None

    store.delete_custom_config("a")
    assert [c.id for c in store.load_custom_configs()] == ["b"]


def test_settings(store):
    assert store.get_setting("current_session_id") is None
    store.set_setting("current_session_id", "s1")
    assert store.get_setting("current_session_id") == "s1"
    store.set_setting("current_session_id", None)
    assert store.get_setting("current_session_id") is None


def test_export_sessions(store):
    session = ChatSession(name="Chat 1", created_at=5)
    store.save_session(session)
    store.append_message(session.id, ChatMessage(text="q", sender="user", id="m1", timestamp=6))
    assert store.export_sessions() == [{
        "id": session.id,
        "name": "Chat 1",
        "createdAt": 5,
        "messages": [{"id": "m1", "text": "q", "sender": "user", "timestamp": 6}],
    }]


def test_loaded_messages_keep_ids_and_timestamps(store):
    session = ChatSession(name="Chat 1")
    store.save_session(session)
    original = ChatMessage(text="hello", sender="ai", id="msg-1", timestamp=1234)
    store.append_message(session.id, original)
    assert store.load_sessions()[0].messages == [original]
