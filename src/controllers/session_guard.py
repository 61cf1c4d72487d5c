"""
Session Guard

FastAPI dependency gating the authenticated views. The session is resolved
through the session store on every request; nothing is cached between
requests. Any failure means "not logged in".
"""

import logging
from enum import Enum
from typing import Optional

from fastapi import Request

from config.settings import settings
from models.schemas import Session
from storage.session_store import SessionUnavailable, get_session_store

logger = logging.getLogger(__name__)

ENTRY_ROUTE = "/auth"


class GuardStatus(str, Enum):
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    REDIRECT = "redirect"


def get_session_token(request: Request) -> Optional[str]:
    """Read the session token from the session cookie or a Bearer header."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()

    return None


def resolve_session(token: Optional[str]) -> Session:
    """
    Resolve a session through the configured store.

    Raises:
        SessionUnavailable: If the session is missing, expired or the lookup fails
    """
    logger.debug(f"Session guard: {GuardStatus.CHECKING.value}")

    try:
        session = get_session_store().get_current_session(token)
    except SessionUnavailable as e:
        logger.debug(f"Session guard: {GuardStatus.REDIRECT.value} ({e})")
        raise
    except Exception as e:
        logger.warning(f"Session lookup error, treating as logged out: {e}")
        raise SessionUnavailable(str(e))

    logger.debug(f"Session guard: {GuardStatus.AUTHENTICATED.value} ({session.user.user_id})")
    return session


def require_session(request: Request) -> Session:
    """
    Dependency: the current session, or SessionUnavailable (redirect to /auth).

    Sync: FastAPI runs the store lookup in its threadpool.
    """
    return resolve_session(get_session_token(request))
