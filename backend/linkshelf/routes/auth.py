"""
LinkShelf Backend — Authentication Routes
===========================================

What:  GitHub OAuth login, callback, logout and the current-identity endpoint.
Who:   `/auth/*` are navigated by the browser (redirects, never JSON);
       `/api/auth/me` is fetched by the client library.

Routes:
    GET /auth/github            → set state cookie, 302 to GitHub
    GET /auth/callback/github   → verify state, create session, 302 to /
    GET /auth/logout            → drop session, 302 to /login
    GET /api/auth/me            → {"authenticated": bool, "user": {id, email} | null}

Failure handling:
    AuthError raised during the callback is turned into a 302 to
    `/login?error=Authentication%20failed%3A%20...` by the global handler in
    main.py, which also clears the state cookie. No session cookie is ever
    set on that path.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from linkshelf.config import Settings
from linkshelf.dependencies import get_app_settings, get_auth_service
from linkshelf.exceptions import ValidationError
from linkshelf.schemas.common import AuthMeResponse, AuthUser
from linkshelf.services.auth_service import (
    SESSION_COOKIE_NAME,
    SESSION_TTL,
    STATE_COOKIE_NAME,
    STATE_TTL_SECONDS,
    AuthService,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.get("/auth/github", summary="Start GitHub login")
async def github_login(
    auth_service: AuthService = Depends(get_auth_service),
    config: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    url, state = auth_service.create_authorization_url()

    response = RedirectResponse(url, status_code=302)
    response.set_cookie(
        STATE_COOKIE_NAME,
        state,
        max_age=STATE_TTL_SECONDS,
        path="/",
        httponly=True,
        secure=config.is_production,
        samesite="lax",
    )
    return response


@router.get("/auth/callback/github", summary="GitHub OAuth callback")
async def github_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    auth_service: AuthService = Depends(get_auth_service),
    config: Settings = Depends(get_app_settings),
) -> RedirectResponse:
    """
    Complete the login started by /auth/github.

    Raises:
        ValidationError: `code` or `state` missing from the query (400)
        AuthError:       state mismatch or GitHub failure (redirect to /login)
    """
    if not code or not state:
        raise ValidationError(message="Missing required parameters")

    user, session, token = await auth_service.complete_github_login(
        code=code,
        state=state,
        stored_state=request.cookies.get(STATE_COOKIE_NAME),
    )

    response = RedirectResponse("/", status_code=302)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=int(SESSION_TTL.total_seconds()),
        path="/",
        httponly=True,
        secure=config.is_production,
        samesite="lax",
    )
    response.delete_cookie(STATE_COOKIE_NAME, path="/")
    logger.info("Session issued for %s (expires %s)", user.id, session.expires_at.isoformat())
    return response


@router.get("/auth/logout", summary="Log out")
async def logout(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    session = getattr(request.state, "session", None)
    if session is not None:
        await auth_service.invalidate_session(session.id)
        logger.info("User %s logged out", session.user_id)

    response = RedirectResponse("/login", status_code=302)
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return response


@router.get("/api/auth/me", response_model=AuthMeResponse, summary="Current identity")
async def me(request: Request) -> AuthMeResponse:
    user = getattr(request.state, "user", None)
    session = getattr(request.state, "session", None)
    if user is not None and session is not None:
        return AuthMeResponse(
            authenticated=True,
            user=AuthUser(id=user.id, email=user.email),
        )
    return AuthMeResponse(authenticated=False, user=None)
