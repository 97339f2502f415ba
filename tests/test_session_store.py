from __future__ import annotations

import json

import pytest

from aether.services.session_store import DEFAULT_TITLE, SessionStore, validate_id


def test_create_and_list_sessions_per_user(tmp_path) -> None:
    store = SessionStore(tmp_path)
    first = store.create_session("user_a", "Biology notes")
    second = store.create_session("user_a")
    store.create_session("user_b")

    sessions = store.list_sessions("user_a")

    assert {s.session_id for s in sessions} == {first.session_id, second.session_id}
    assert second.title == DEFAULT_TITLE
    assert store.list_sessions("nobody") == []


def test_messages_keep_insertion_order(tmp_path) -> None:
    store = SessionStore(tmp_path)
    session = store.create_session("user_a")

    store.add_message("user_a", session.session_id, "user", "hello")
    store.add_message("user_a", session.session_id, "assistant", "hi there")
    store.add_message("user_a", session.session_id, "user", "bye")

    messages = store.list_messages("user_a", session.session_id)
    assert [(m.role, m.content) for m in messages] == [
        ("user", "hello"),
        ("assistant", "hi there"),
        ("user", "bye"),
    ]
    assert messages[0].created_at <= messages[1].created_at <= messages[2].created_at


def test_first_user_message_titles_new_session(tmp_path) -> None:
    store = SessionStore(tmp_path)
    session = store.create_session("user_a")

    store.add_message("user_a", session.session_id, "user", "x" * 80)

    assert store.get_session("user_a", session.session_id).title == "x" * 50


def test_most_recent_activity_is_listed_first(tmp_path) -> None:
    store = SessionStore(tmp_path)
    old = store.create_session("user_a", "old")
    store.create_session("user_a", "new")

    store.add_message("user_a", old.session_id, "user", "bump")

    assert store.list_sessions("user_a")[0].session_id == old.session_id


def test_sessions_are_isolated_between_users(tmp_path) -> None:
    store = SessionStore(tmp_path)
    session = store.create_session("user_a")

    with pytest.raises(KeyError):
        store.list_messages("user_b", session.session_id)


def test_session_file_is_camel_case_json(tmp_path) -> None:
    store = SessionStore(tmp_path)
    session = store.create_session("user_a")
    store.add_message("user_a", session.session_id, "user", "hello")

    data = json.loads((tmp_path / "user_a" / f"{session.session_id}.json").read_text(encoding="utf-8"))

    assert data["sessionId"] == session.session_id
    assert data["messages"][0]["content"] == "hello"
    assert "createdAt" in data["messages"][0]


def test_delete_session(tmp_path) -> None:
    store = SessionStore(tmp_path)
    session = store.create_session("user_a")

    store.delete_session("user_a", session.session_id)

    assert store.list_sessions("user_a") == []
    with pytest.raises(KeyError):
        store.delete_session("user_a", session.session_id)


def test_corrupt_session_file_is_skipped(tmp_path) -> None:
    store = SessionStore(tmp_path)
    store.create_session("user_a")
    (tmp_path / "user_a" / "broken.json").write_text("{not json", encoding="utf-8")

    assert len(store.list_sessions("user_a")) == 1


@pytest.mark.parametrize("bad", ["", "   ", "../etc", "a/b", "a\\b", "x" * 129])
def test_invalid_ids_are_rejected(bad: str) -> None:
    with pytest.raises(ValueError):
        validate_id(bad)


def test_path_traversal_session_id_is_rejected(tmp_path) -> None:
    store = SessionStore(tmp_path)
    with pytest.raises(ValueError):
        store.get_session("user_a", "../../secrets")
