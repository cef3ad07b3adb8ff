"""In-memory admin session store."""

import asyncio
import logging
import secrets
import time
from typing import Callable, Dict, List, Optional

from ..models.errors import AuthenticationException
from ..models.session import AdminSession


TOKEN_BYTES = 32  # 256 bits of entropy
DEFAULT_SESSION_TTL = 8 * 60 * 60


class SessionStore:
    """Issues and validates admin bearer tokens.

    Sessions live only in process memory, so a restart invalidates every
    token. Each issued token schedules its own removal on the running event
    loop; ``validate`` also checks the expiry time so a token is never
    honoured past its TTL even if the scheduled removal has not run yet.
    """

    def __init__(
        self,
        admin_password: str,
        session_ttl: int = DEFAULT_SESSION_TTL,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the session store.

        Args:
            admin_password: The shared admin passphrase
            session_ttl: Session time-to-live in seconds (default: 8 hours)
            clock: Monotonic clock, replaceable in tests
        """
        if not admin_password:
            raise ValueError("Admin password must be configured")

        self._secret = admin_password.encode('utf-8')
        self.session_ttl = session_ttl
        self._clock = clock
        self._sessions: Dict[str, AdminSession] = {}
        self._expiry_handles: Dict[str, asyncio.TimerHandle] = {}
        self.logger = logging.getLogger(__name__)

    def check_password(self, password: Optional[str]) -> bool:
        """Constant-time comparison against the configured secret."""
        candidate = (password or '').encode('utf-8')
        return secrets.compare_digest(candidate, self._secret)

    def authenticate(self, password: Optional[str]) -> str:
        """
        Exchange the admin password for a new bearer token.

        Returns:
            The newly issued token

        Raises:
            AuthenticationException: If the password does not match
        """
        if not self.check_password(password):
            self.logger.warning("Admin login rejected")
            raise AuthenticationException(
                error_code="INVALID_PASSWORD",
                message="Invalid password"
            )

        token = secrets.token_hex(TOKEN_BYTES)
        now = self._clock()
        self._sessions[token] = AdminSession(
            token=token,
            issued_at=now,
            expires_at=now + self.session_ttl
        )
        self._schedule_expiry(token)

        self.logger.info(f"Admin session issued, {len(self._sessions)} active")
        return token

    def _schedule_expiry(self, token: str) -> None:
        """Register the deferred removal of ``token`` on the running loop, if any."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (synchronous caller); expiry is still enforced by validate()
            return
        self._expiry_handles[token] = loop.call_later(self.session_ttl, self._expire, token)

    def _expire(self, token: str) -> None:
        self._expiry_handles.pop(token, None)
        if self._sessions.pop(token, None) is not None:
            self.logger.info("Admin session expired")

    def validate(self, token: Optional[str]) -> bool:
        """True iff ``token`` was issued here, is unexpired and not revoked."""
        if not token:
            return False

        session = self._sessions.get(token)
        if session is None:
            return False

        if session.is_expired(self._clock()):
            self.revoke(token)
            return False

        return True

    def revoke(self, token: Optional[str]) -> bool:
        """Invalidate a token early. Returns True if the token was live."""
        if not token:
            return False

        handle = self._expiry_handles.pop(token, None)
        if handle is not None:
            handle.cancel()
        return self._sessions.pop(token, None) is not None

    def cleanup_expired(self) -> int:
        """Drop expired sessions. Returns number of sessions cleaned."""
        now = self._clock()
        expired = [token for token, session in self._sessions.items() if session.is_expired(now)]
        for token in expired:
            self.revoke(token)
        return len(expired)

    def list_sessions(self) -> List[str]:
        """List all active session tokens."""
        self.cleanup_expired()
        return list(self._sessions)

    @property
    def active_count(self) -> int:
        return len(self.list_sessions())

    def close(self) -> None:
        """Cancel pending expiry timers and forget every session."""
        for handle in self._expiry_handles.values():
            handle.cancel()
        self._expiry_handles.clear()
        count = len(self._sessions)
        self._sessions.clear()
        if count:
            self.logger.info(f"Cleared {count} admin sessions")
