"""
auth/sessions.py -- In-memory registry of issued session tokens.

A signed JWT on its own cannot be withdrawn before it expires. The registry
keeps the set of tokens that are still live, so logout can end a session
immediately: a token is valid only if its signature and expiry check out AND
it is still registered here.

The registry is the only shared mutable state in the auth layer. Sync route
handlers run on FastAPI's thread pool, so every access goes through a
threading.Lock. Sessions are process-local and do not survive a restart.

One registry is created by the application lifespan (api/main.py) and injected
into the Authenticator and the AccessGuard. Nothing imports a global instance.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone

from auth.models import Session
from auth.tokens import create_access_token, decode_access_token

logger = logging.getLogger("taskvault.auth")


class SessionRegistry:
    """Issues signed session tokens and tracks which ones are still active.

    Usage:
        registry = SessionRegistry(expire_seconds=1800)
        session = registry.issue("a@x.com")
        registry.resolve(session.token)   # -> Session
        registry.revoke(session.token)
        registry.is_active(session.token) # -> False
    """

    def __init__(self, expire_seconds: int) -> None:
        self.expire_seconds = expire_seconds
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def issue(self, subject_email: str) -> Session:
        """Mint a token for subject_email and register it as active."""
        # JWT time claims have one-second resolution; keep the Session in step.
        issued_at = datetime.now(timezone.utc).replace(microsecond=0)
        expires_at = issued_at + timedelta(seconds=self.expire_seconds)
        token = create_access_token(subject_email, issued_at=issued_at, expires_at=expires_at)
        session = Session(
            token=token,
            subject_email=subject_email,
            issued_at=issued_at,
            expires_at=expires_at,
        )
        with self._lock:
            self._sessions[token] = session
        return session

    def revoke(self, token: str) -> None:
        """Forget a token. Revoking an unknown or already revoked token is a no-op."""
        with self._lock:
            self._sessions.pop(token, None)

    def is_active(self, token: str) -> bool:
        """True if the token is registered and its expiry has not passed."""
        with self._lock:
            session = self._sessions.get(token)
        return session is not None and session.expires_at > datetime.now(timezone.utc)

    def resolve(self, token: str) -> Session | None:
        """Return the Session for a token that passes BOTH checks, else None.

        1. The JWT signature and expiry verify against SECRET_KEY.
        2. The token is still active in this registry.
        """
        payload = decode_access_token(token)
        if payload is None:
            return None
        with self._lock:
            session = self._sessions.get(token)
        if session is None or session.expires_at <= datetime.now(timezone.utc):
            return None
        if session.subject_email != payload["sub"]:
            # Cannot happen for tokens we minted; refuse rather than guess.
            logger.warning("Session subject mismatch for registered token")
            return None
        return session

    def purge_expired(self) -> int:
        """Drop sessions whose expiry has passed. Returns the number removed."""
        now = datetime.now(timezone.utc)
        with self._lock:
            expired = [t for t, s in self._sessions.items() if s.expires_at <= now]
            for token in expired:
                del self._sessions[token]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
