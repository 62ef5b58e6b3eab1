"""
LinkShelf Backend — Session Middleware
========================================

What:  Resolves the `auth-session` cookie into the per-request identity.
How:   Hashes the cookie token, looks the session up through AuthService
       (which also enforces expiry), and sets:
           request.state.session → AuthSession or None
           request.state.user    → User or None
Who:   Read by `get_current_user`, `/api/auth/me` and `/auth/logout`.

Cookie hygiene:
    A cookie that does not resolve to a live session (unknown, expired,
    deleted by logout elsewhere) is cleared on the way out, unless the
    handler already set a fresh one during this request. When the store
    itself fails, the request proceeds anonymously and the cookie is left
    alone.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from linkshelf.exceptions import LinkShelfError
from linkshelf.services.auth_service import SESSION_COOKIE_NAME

logger = logging.getLogger(__name__)


class SessionMiddleware(BaseHTTPMiddleware):
    """Populates request.state.user / request.state.session from the cookie."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.user = None
        request.state.session = None

        token = request.cookies.get(SESSION_COOKIE_NAME)
        stale_cookie = False

        if token:
            auth_service = request.app.state.auth_service
            try:
                session, user = await auth_service.validate_session_token(token)
            except LinkShelfError as e:
                # Store unavailable: anonymous for this request, cookie kept
                logger.error("Session validation failed: %s", e.message)
            else:
                if session is not None and user is not None:
                    request.state.session = session
                    request.state.user = user
                else:
                    stale_cookie = True

        response = await call_next(request)

        if stale_cookie and not _sets_cookie(response, SESSION_COOKIE_NAME):
            response.delete_cookie(SESSION_COOKIE_NAME, path="/")
        return response


def _sets_cookie(response: Response, name: str) -> bool:
    prefix = f"{name}="
    return any(
        value.startswith(prefix)
        for value in response.headers.getlist("set-cookie")
    )
