"""
SESSION STORE MODULE
====================

Persists chat sessions and their messages as JSON files, partitioned by user:

  <base_dir>/<user_id>/<session_id>.json

Each file holds one ChatSession (title, timestamps, ordered messages). The
HTTP layer appends the user's message, runs the chat flow, then appends the
assistant's reply; the flows themselves never touch the store.

ORDERING:
  Messages keep insertion order and get a server-assigned UTC timestamp.
  Sessions are listed newest-activity first.

SAFETY:
  user_id and session_id end up in file paths, so both are validated (no path
  separators, no "..", at most 128 characters) and bad ones raise ValueError.
  Writes go through a lock and a temp file + replace, so a crash mid-write
  leaves the previous version intact.
"""

import json
import logging
import os
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from aether.models import ChatSession, StoredMessage


logger = logging.getLogger("AETHER")

DEFAULT_TITLE = "New Chat"
TITLE_LENGTH = 50
MAX_ID_LENGTH = 128


def _now() -> datetime:
    return datetime.now(timezone.utc)


def validate_id(value: str, kind: str = "id") -> str:
    """Reject identifiers that are empty, too long, or could escape the data folder."""
    if not value or not value.strip():
        raise ValueError(f"{kind} must not be empty")
    if len(value) > MAX_ID_LENGTH:
        raise ValueError(f"{kind} must be at most {MAX_ID_LENGTH} characters")
    if ".." in value or "/" in value or "\\" in value or "\x00" in value:
        raise ValueError(f"Invalid {kind}")
    return value


class SessionStore:
    """JSON-file chat session store keyed by user id."""

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------------------
    # PATHS AND FILE I/O
    # ------------------------------------------------------------------------------

    def _user_dir(self, user_id: str) -> Path:
        return self.base_dir / validate_id(user_id, "user_id")

    def _session_path(self, user_id: str, session_id: str) -> Path:
        return self._user_dir(user_id) / f"{validate_id(session_id, 'session_id')}.json"

    def _read(self, path: Path) -> ChatSession:
        with open(path, "r", encoding="utf-8") as f:
            return ChatSession.model_validate(json.load(f))

    def _write(self, session: ChatSession) -> None:
        path = self._session_path(session.user_id, session.session_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(session.model_dump(mode="json", by_alias=True), f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)

    # ------------------------------------------------------------------------------
    # SESSIONS
    # ------------------------------------------------------------------------------

    def create_session(self, user_id: str, title: Optional[str] = None) -> ChatSession:
        now = _now()
        session = ChatSession(
            session_id=str(uuid.uuid4()),
            user_id=validate_id(user_id, "user_id"),
            title=(title or "").strip() or DEFAULT_TITLE,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._write(session)
        logger.info("Created session %s for user %s", session.session_id, user_id)
        return session

    def get_session(self, user_id: str, session_id: str) -> ChatSession:
        path = self._session_path(user_id, session_id)
        if not path.exists():
            raise KeyError(f"Session not found: {session_id}")
        return self._read(path)

    def list_sessions(self, user_id: str) -> List[ChatSession]:
        user_dir = self._user_dir(user_id)
        if not user_dir.exists():
            return []
        sessions = []
        for file_path in user_dir.glob("*.json"):
            try:
                sessions.append(self._read(file_path))
            except Exception as e:
                logger.warning("Could not load chat session file %s: %s", file_path, e)
        return sorted(sessions, key=lambda s: s.updated_at, reverse=True)

    def delete_session(self, user_id: str, session_id: str) -> None:
        path = self._session_path(user_id, session_id)
        with self._lock:
            if not path.exists():
                raise KeyError(f"Session not found: {session_id}")
            path.unlink()

    # ------------------------------------------------------------------------------
    # MESSAGES
    # ------------------------------------------------------------------------------

    def add_message(self, user_id: str, session_id: str, role: str, content: str) -> StoredMessage:
        """Append one message. The first user message names an untitled session."""
        with self._lock:
            session = self.get_session(user_id, session_id)
            message = StoredMessage(role=role, content=content, created_at=_now())
            if role == "user" and session.title == DEFAULT_TITLE and not session.messages:
                session.title = content.strip()[:TITLE_LENGTH] or DEFAULT_TITLE
            session.messages.append(message)
            session.updated_at = message.created_at
            self._write(session)
        return message

    def list_messages(self, user_id: str, session_id: str) -> List[StoredMessage]:
        return list(self.get_session(user_id, session_id).messages)
