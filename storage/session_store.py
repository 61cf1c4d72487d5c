"""
Session storage for authenticated dashboard users.

The identity provider is an external collaborator; the service only needs
three operations from it: create a session, resolve the current session for
a token, and delete every session of a user. Two backends are provided: an
in-memory store for development and tests, and a Redis store for deployments.
"""

import hmac
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from config.settings import settings
from models.schemas import Session, SessionUser
from utils.helpers import display_name_from_email, generate_session_token, hash_password

logger = logging.getLogger(__name__)


class SessionUnavailable(Exception):
    """Raised when no valid session can be resolved for a request."""


class InvalidCredentials(Exception):
    """Raised when a login attempt does not match a configured account."""


class SessionStore:
    """Interface to the session backend."""

    def create_session(self, user: SessionUser) -> Session:
        raise NotImplementedError

    def get_current_session(self, token: Optional[str]) -> Session:
        """
        Resolve the session for a token.

        Raises:
            SessionUnavailable: If the token is missing, unknown or expired
        """
        raise NotImplementedError

    def delete_all_sessions(self, user_id: str) -> int:
        raise NotImplementedError


class InMemorySessionStore(SessionStore):
    """Dictionary-backed sessions with expiry. Not shared across processes."""

    def __init__(self, ttl_seconds: Optional[int] = None):
        self.ttl_seconds = settings.SESSION_TTL if ttl_seconds is None else ttl_seconds
        self.sessions: Dict[str, Session] = {}

    def create_session(self, user: SessionUser) -> Session:
        self._prune_expired()
        session = Session(token=generate_session_token(), user=user)
        self.sessions[session.token] = session
        logger.info(f"Created session for {user.user_id}")
        return session

    def _is_expired(self, session: Session) -> bool:
        return datetime.now(timezone.utc) - session.created_at > timedelta(seconds=self.ttl_seconds)

    def _prune_expired(self) -> None:
        expired = [token for token, s in self.sessions.items() if self._is_expired(s)]
        for token in expired:
            del self.sessions[token]
        if expired:
            logger.debug(f"Pruned {len(expired)} expired session(s)")

    def get_current_session(self, token: Optional[str]) -> Session:
        if not token:
            raise SessionUnavailable("No session token")

        session = self.sessions.get(token)
        if session is None:
            raise SessionUnavailable("Unknown session token")

        if self._is_expired(session):
            del self.sessions[token]
            raise SessionUnavailable("Session expired")

        return session

    def delete_all_sessions(self, user_id: str) -> int:
        tokens = [token for token, s in self.sessions.items() if s.user.user_id == user_id]
        for token in tokens:
            del self.sessions[token]
        logger.info(f"Deleted {len(tokens)} session(s) for {user_id}")
        return len(tokens)


class RedisSessionStore(SessionStore):
    """
    Sessions stored in Redis.

    Each session is a JSON document under ``session:<token>`` with a TTL;
    ``user_sessions:<user_id>`` is a set indexing the user's tokens so they
    can all be revoked on logout.
    """

    SESSION_PREFIX = "session:"
    USER_INDEX_PREFIX = "user_sessions:"

    def __init__(self, client=None, ttl_seconds: Optional[int] = None):
        if client is None:
            from config.database import get_redis_client
            client = get_redis_client()
        self.client = client
        self.ttl_seconds = settings.SESSION_TTL if ttl_seconds is None else ttl_seconds

    def _session_key(self, token: str) -> str:
        return f"{self.SESSION_PREFIX}{token}"

    def _index_key(self, user_id: str) -> str:
        return f"{self.USER_INDEX_PREFIX}{user_id}"

    def create_session(self, user: SessionUser) -> Session:
        session = Session(token=generate_session_token(), user=user)

        self.client.setex(self._session_key(session.token), self.ttl_seconds, session.model_dump_json())
        self.client.sadd(self._index_key(user.user_id), session.token)
        self.client.expire(self._index_key(user.user_id), self.ttl_seconds)

        logger.info(f"Created session for {user.user_id}")
        return session

    def get_current_session(self, token: Optional[str]) -> Session:
        if not token:
            raise SessionUnavailable("No session token")

        try:
            raw = self.client.get(self._session_key(token))
        except Exception as e:
            logger.warning(f"Session lookup failed: {e}")
            raise SessionUnavailable(f"Session lookup failed: {e}")

        if raw is None:
            raise SessionUnavailable("Unknown or expired session token")

        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")

        try:
            return Session.model_validate(json.loads(raw))
        except ValueError as e:
            logger.warning(f"Discarding unreadable session {token[:8]}...: {e}")
            raise SessionUnavailable("Unreadable session")

    def delete_all_sessions(self, user_id: str) -> int:
        index_key = self._index_key(user_id)
        tokens = list(self.client.smembers(index_key) or [])

        if tokens:
            self.client.delete(*[self._session_key(t) for t in tokens])
        self.client.delete(index_key)

        logger.info(f"Deleted {len(tokens)} session(s) for {user_id}")
        return len(tokens)


class LocalAuthProvider:
    """
    Checks credentials against the AUTH_ACCOUNTS setting.

    AUTH_ACCOUNTS maps an email address to the sha256 hex digest of the
    account password.
    """

    def __init__(self, store: SessionStore, accounts: Optional[Dict[str, str]] = None):
        self.store = store
        self.accounts = {
            email.lower(): digest.lower()
            for email, digest in (settings.AUTH_ACCOUNTS if accounts is None else accounts).items()
        }

    def login(self, email: str, password: str) -> Session:
        email = (email or "").strip().lower()
        expected = self.accounts.get(email)

        if expected is None or not hmac.compare_digest(hash_password(password or ""), expected):
            logger.warning(f"Rejected login for {email or '<blank>'}")
            raise InvalidCredentials("Invalid email or password")

        user = SessionUser(user_id=email, name=display_name_from_email(email), email=email)
        return self.store.create_session(user)

    def logout(self, user_id: str) -> int:
        return self.store.delete_all_sessions(user_id)


# Singleton instances for global access
_session_store_instance: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    """
    Get or create the session store selected by SESSION_BACKEND.

    Returns:
        SessionStore: InMemorySessionStore ("memory") or RedisSessionStore ("redis")
    """
    global _session_store_instance
    if _session_store_instance is None:
        backend = settings.SESSION_BACKEND.lower()
        if backend == "redis":
            _session_store_instance = RedisSessionStore()
        else:
            if backend != "memory":
                logger.warning(f"Unknown session backend '{backend}', using in-memory sessions")
            _session_store_instance = InMemorySessionStore()
        logger.info(f"Session store: {type(_session_store_instance).__name__}")
    return _session_store_instance


def set_session_store(store: Optional[SessionStore]) -> None:
    """Replace the global session store (None resets to the configured backend)."""
    global _session_store_instance
    _session_store_instance = store


def get_auth_provider() -> LocalAuthProvider:
    return LocalAuthProvider(get_session_store())
