"""
Temporary storage for import sessions.
Keeps sessions in memory with TTL expiration.
Single-process only; a restart drops every open session.
"""
import threading
from datetime import datetime, timedelta
from typing import Optional

from config import settings
from exceptions import ImportSessionNotFoundError
from services.import_session import ImportSession

_sessions: dict[str, tuple[datetime, ImportSession]] = {}
_lock = threading.Lock()


def store_session(session: ImportSession, ttl_minutes: Optional[int] = None) -> str:
    """Store a session, return its id."""
    ttl = ttl_minutes or settings.import_session_ttl_minutes
    expires_at = datetime.now() + timedelta(minutes=ttl)
    with _lock:
        _cleanup_expired()
        _sessions[session.session_id] = (expires_at, session)
    return session.session_id


def get_session(session_id: str) -> ImportSession:
    """
    Retrieve a session by id.

    Raises:
        ImportSessionNotFoundError: If expired or never stored
    """
    with _lock:
        entry = _sessions.get(session_id)
        if entry is None:
            raise ImportSessionNotFoundError(session_id)
        expires_at, session = entry
        if datetime.now() > expires_at:
            del _sessions[session_id]
            raise ImportSessionNotFoundError(session_id)
        return session


def discard_session(session_id: str) -> bool:
    """Remove a session. Returns False if it wasn't there."""
    with _lock:
        return _sessions.pop(session_id, None) is not None


def clear_sessions() -> None:
    """Drop every session."""
    with _lock:
        _sessions.clear()


def _cleanup_expired() -> None:
    """Remove all expired entries. Caller holds _lock."""
    now = datetime.now()
    expired = [k for k, (exp, _) in _sessions.items() if now > exp]
    for k in expired:
        del _sessions[k]
