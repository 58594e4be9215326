"""
Session registry for Pagecast.

Single source of truth for all broadcast sessions. A presenter publishes page
content under a session ID, participants respond keyed by user ID, and the
presenter reads or clears the collected responses.

Consistency:
- Every operation runs under one registry-wide lock, so operations on the
  same session are linearized and concurrent responses from different users
  all persist.
- Nothing inside the critical section does I/O.
- If the lock cannot be acquired within ``lock_timeout`` seconds the registry
  is considered wedged and RegistryLockError is raised.

The registry is a plain object. Whoever builds the application owns it and
hands it to the request handlers and to the expiry sweeper.
"""

from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterator, Optional
import logging
import threading

from pagecast.core.exceptions import RegistryLockError, session_not_found
from pagecast.models.session_state import SessionState, utc_now
from pagecast.services.validation_service import ValidationPolicy, ValidationService

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Concurrent in-memory store of sessions.

    Design decisions:
    1. Sessions are created by set_page only, never by reads or responses
    2. set_page starts a new round and clears all responses
    3. Responses are a per-user mapping, last write wins
    4. Expiry is a periodic full scan driven from outside (see core.expiry)
    """

    def __init__(
        self,
        policy: Optional[ValidationPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
        lock_timeout: float = 5.0
    ):
        self._sessions: Dict[str, SessionState] = {}
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout
        self._clock = clock or utc_now
        self.validator = ValidationService(policy)

        # Metrics for monitoring
        self._creation_count = 0
        self._expired_count = 0

    @contextmanager
    def _locked(self, operation: str) -> Iterator[Dict[str, SessionState]]:
        if not self._lock.acquire(timeout=self._lock_timeout):
            logger.error(f"Could not acquire registry lock for {operation} within {self._lock_timeout}s")
            raise RegistryLockError(
                "Session registry is unavailable",
                operation=operation,
                timeout=self._lock_timeout
            )
        try:
            yield self._sessions
        finally:
            self._lock.release()

    def get_page(self, session_id: str) -> str:
        """
        Return the page content of a session.

        Raises:
            ValidationError: invalid session ID
            SessionNotFoundError: no such session
        """
        self.validator.validate_session_id(session_id)
        with self._locked("get_page") as sessions:
            session = sessions.get(session_id)
            if session is None:
                raise session_not_found(session_id)
            return session.page_content

    def set_page(self, session_id: str, content: str) -> None:
        """
        Publish page content, creating the session if needed.

        Replaces the page, clears every recorded response and refreshes the
        session's last update time as one atomic step.
        """
        self.validator.validate_session_id(session_id)
        self.validator.validate_content(content)
        with self._locked("set_page") as sessions:
            session = sessions.get(session_id)
            if session is None:
                session = SessionState()
                sessions[session_id] = session
                self._creation_count += 1
                logger.info(f"Created session {session_id[:16]}")
            session.set_page(content, self._clock())
        logger.debug(f"Set page for session {session_id[:16]} ({len(content)} chars)")

    def reset_responses(self, session_id: str) -> None:
        """Clear the responses of a session; unknown sessions are ignored"""
        self.validator.validate_session_id(session_id)
        with self._locked("reset_responses") as sessions:
            session = sessions.get(session_id)
            if session is not None:
                session.clear_responses()
        logger.debug(f"Reset responses for session {session_id[:16]}")

    def respond(self, session_id: str, user_id: str, body: str) -> None:
        """
        Record the response of a user, overwriting any earlier one.

        Raises:
            ValidationError: invalid session ID, user ID or oversized body
            SessionNotFoundError: the session was never published or has expired
        """
        self.validator.validate_session_id(session_id)
        self.validator.validate_user_id(user_id)
        self.validator.validate_content(body, field="body")
        with self._locked("respond") as sessions:
            session = sessions.get(session_id)
            if session is None:
                raise session_not_found(session_id)
            session.record_response(user_id, body, self._clock())
        logger.debug(f"Recorded response from {user_id[:16]} in session {session_id[:16]}")

    def get_responses(self, session_id: str) -> Dict[str, str]:
        """Return a snapshot of the responses of a session, keyed by user ID"""
        self.validator.validate_session_id(session_id)
        with self._locked("get_responses") as sessions:
            session = sessions.get(session_id)
            if session is None:
                raise session_not_found(session_id)
            return dict(session.response_by_user)

    def has_session(self, session_id: str) -> bool:
        with self._locked("has_session") as sessions:
            return session_id in sessions

    def count_sessions(self) -> int:
        with self._locked("count_sessions") as sessions:
            return len(sessions)

    def expire_older_than(self, now: datetime, ttl: timedelta) -> int:
        """
        Remove every session whose last update is more than ``ttl`` before ``now``.

        The surviving sessions are collected in one pass and swapped in as a
        new mapping.

        Returns:
            Number of removed sessions
        """
        with self._locked("expire_older_than") as sessions:
            alive = {
                sid: session for sid, session in sessions.items()
                if not session.is_expired(now, ttl)
            }
            removed = len(sessions) - len(alive)
            self._sessions = alive
            self._expired_count += removed

        if removed:
            logger.info(f"Expired {removed} sessions older than {ttl}")
        return removed

    def sweep(self, ttl: timedelta) -> int:
        """Expire sessions relative to the registry clock"""
        return self.expire_older_than(self._clock(), ttl)

    def get_metrics(self) -> Dict[str, int]:
        """Get registry metrics for monitoring"""
        with self._locked("get_metrics") as sessions:
            return {
                "active_sessions": len(sessions),
                "total_created": self._creation_count,
                "expired_cleaned": self._expired_count,
            }


def create_session_registry(settings) -> SessionRegistry:
    """Build a registry configured from application settings"""
    registry = SessionRegistry(
        policy=ValidationPolicy.from_settings(settings),
        lock_timeout=settings.LOCK_TIMEOUT_SECONDS
    )
    logger.info(
        f"Initialized SessionRegistry (max id length {settings.MAX_ID_LENGTH}, "
        f"max payload {settings.MAX_PAYLOAD_BYTES} bytes, validation "
        f"{'on' if settings.VALIDATE_INPUT else 'off'})"
    )
    return registry
