"""
Auth Routes

Login, logout, account and the unauthenticated entry view.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse, RedirectResponse

from config.settings import settings
from models.schemas import LoginRequest, Session
from src.controllers.dashboard_controller import discard_dashboard_state
from src.controllers.session_guard import ENTRY_ROUTE, require_session
from storage.session_store import InvalidCredentials, get_auth_provider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.get("/auth")
async def auth_view():
    """Entry view for signed-out users."""
    return {
        "view": "auth",
        "title": "Sign in",
        "login": "POST /auth/login",
        "fields": ["email", "password"]
    }


@router.post("/auth/login")
def login(request: LoginRequest):
    """
    Sign in with a configured account.

    Sets the session cookie and returns the session user.
    """
    try:
        session = get_auth_provider().login(request.email, request.password)
    except InvalidCredentials as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    response = JSONResponse({
        "user": session.user.model_dump(),
        "redirect": "/analytics"
    })
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.token,
        max_age=settings.SESSION_TTL,
        httponly=True,
        samesite="lax"
    )
    return response


@router.post("/auth/logout")
def logout(session: Session = Depends(require_session)):
    """Revoke every session of the user, drop their dashboard and go to /auth."""
    user_id = session.user.user_id

    try:
        get_auth_provider().logout(user_id)
    except Exception as e:
        logger.error(f"Error deleting sessions for {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error signing out: {str(e)}"
        )

    discard_dashboard_state(user_id)

    response = RedirectResponse(ENTRY_ROUTE, status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@router.get("/account")
async def account(session: Session = Depends(require_session)):
    """The signed-in user."""
    return session.user.model_dump()
