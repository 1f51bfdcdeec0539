"""Mini README: Admin authentication for the festival dashboard.

Structure:
    * AdminUser - the signed-in administrator.
    * AdminSession - bearer token issued at sign-in with its expiry.
    * AdminAuthenticator - sign in/out, token lookup, session-change events.

There is a single admin account configured through ``FestivalFundSettings``.
The configured password is kept only as a salted PBKDF2 digest and compared
in constant time. Sessions live in process memory; restarting the service
signs everybody out. Listeners registered with ``on_auth_state_change``
receive the user on sign-in and ``None`` on sign-out or expiry.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from ..errors import AuthenticationError
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

_PBKDF2_ROUNDS = 120_000

AuthListener = Callable[[Optional["AdminUser"]], None]


@dataclass(frozen=True, slots=True)
class AdminUser:
    email: str


@dataclass(frozen=True, slots=True)
class AdminSession:
    token: str
    user: AdminUser
    expires_at: datetime

    def expired(self, now: datetime) -> bool:
        return now >= self.expires_at


def _digest(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PBKDF2_ROUNDS)


class AdminAuthenticator:
    """Issue and validate admin session tokens."""

    def __init__(
        self,
        admin_email: str,
        admin_password: str,
        *,
        session_ttl: timedelta = timedelta(hours=12),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        if not admin_password:
            raise ValueError("An admin password must be configured.")
        self._email = admin_email.strip().lower()
        self._salt = secrets.token_bytes(16)
        self._password_digest = _digest(admin_password, self._salt)
        self._session_ttl = session_ttl
        self._clock = clock
        self._sessions: Dict[str, AdminSession] = {}
        self._listeners: List[AuthListener] = []

    def sign_in(self, email: str, password: str) -> AdminSession:
        """Validate credentials and return a fresh session."""

        email_ok = hmac.compare_digest(email.strip().lower().encode("utf-8"), self._email.encode("utf-8"))
        password_ok = hmac.compare_digest(_digest(password, self._salt), self._password_digest)
        if not (email_ok and password_ok):
            LOGGER.warning("Rejected admin sign-in for %s", email)
            raise AuthenticationError("Invalid email or password")
        self._prune_expired()
        user = AdminUser(email=self._email)
        session = AdminSession(
            token=secrets.token_urlsafe(32),
            user=user,
            expires_at=self._clock() + self._session_ttl,
        )
        self._sessions[session.token] = session
        LOGGER.info("Admin %s signed in", user.email)
        self._notify(user)
        return session

    def _prune_expired(self) -> None:
        now = self._clock()
        expired = [token for token, session in self._sessions.items() if session.expired(now)]
        for token in expired:
            del self._sessions[token]
        if expired:
            LOGGER.debug("Dropped %s expired admin sessions", len(expired))

    @property
    def active_session_count(self) -> int:
        return len(self._sessions)

    def sign_out(self, token: str) -> None:
        """End a session; unknown tokens are ignored."""

        session = self._sessions.pop(token, None)
        if session is not None:
            LOGGER.info("Admin %s signed out", session.user.email)
            self._notify(None)

    def current_user(self, token: Optional[str]) -> Optional[AdminUser]:
        """Return the user behind ``token`` or ``None`` when missing/expired."""

        if not token:
            return None
        session = self._sessions.get(token)
        if session is None:
            return None
        if session.expired(self._clock()):
            del self._sessions[token]
            LOGGER.info("Admin session for %s expired", session.user.email)
            self._notify(None)
            return None
        return session.user

    def require_user(self, token: Optional[str]) -> AdminUser:
        """Like ``current_user`` but raise ``AuthenticationError`` when absent."""

        user = self.current_user(token)
        if user is None:
            raise AuthenticationError("Admin sign-in required")
        return user

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register ``listener`` for sign-in/out events; returns an unsubscribe."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, user: Optional[AdminUser]) -> None:
        for listener in list(self._listeners):
            listener(user)
