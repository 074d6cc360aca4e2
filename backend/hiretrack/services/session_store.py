import threading
import time
from dataclasses import dataclass

from hiretrack.config import settings
from hiretrack.utils.security import generate_token


@dataclass
class SessionState:
    user_id: str
    active_tenant_id: str | None
    expires_at: float


class SessionStore:
    """Bearer sessions for already authenticated users.

    Credentials are checked upstream; this store only issues tokens, expires
    them after ``session_ttl_seconds`` of inactivity, and holds the one piece
    of per-session state this service writes: the active tenant id.

    Sync dependencies run in the threadpool, so every access to the session
    map holds ``_lock``.
    """

    def __init__(self):
        self._sessions: dict[str, SessionState] = {}
        self._lock = threading.Lock()

    def _cleanup_expired(self):
        # Caller holds the lock.
        now = time.time()
        self._sessions = {t: s for t, s in self._sessions.items() if s.expires_at > now}

    def open_session(self, user_id: str, active_tenant_id: str | None = None) -> dict:
        token = generate_token()
        ttl = settings.session_ttl_seconds
        with self._lock:
            self._sessions[token] = SessionState(
                user_id=user_id,
                active_tenant_id=active_tenant_id,
                expires_at=time.time() + ttl,
            )
        return {"token": token, "expires_in_seconds": ttl}

    def get(self, token: str) -> SessionState | None:
        with self._lock:
            self._cleanup_expired()
            return self._sessions.get(token)

    def touch(self, token: str):
        with self._lock:
            if token in self._sessions:
                self._sessions[token].expires_at = time.time() + settings.session_ttl_seconds

    def set_active_tenant(self, token: str, tenant_id: str):
        # Last write wins; a session belongs to a single caller.
        with self._lock:
            if token in self._sessions:
                self._sessions[token].active_tenant_id = tenant_id

    def close(self, token: str):
        with self._lock:
            self._sessions.pop(token, None)

    def clear(self):
        with self._lock:
            self._sessions.clear()


session_store = SessionStore()
