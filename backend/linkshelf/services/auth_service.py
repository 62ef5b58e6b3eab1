"""
LinkShelf Backend — Authentication Service
============================================

What:  Session issuance, validation and invalidation, plus the GitHub login
       orchestration that ends in a new session.
How:   Sessions are stored in the active backend. The browser only ever
       holds the raw token; the stored session id is its SHA-256 digest, so
       a leaked session table cannot be replayed as cookies.
Who:   Used by the auth routes (login/callback/logout) and by
       SessionMiddleware on every request.

Login state machine:
    Anonymous
      │  GET /auth/github          → state nonce stored in cookie
      ▼
    Redirected(state)
      │  GET /auth/callback/github → state checked, code exchanged,
      │                              user found or created, session stored
      ▼
    Authenticated(session)
      │  logout / expiry / unknown token
      ▼
    Anonymous

Token format:
    18 random bytes, base64url without padding (24 characters). The state
    nonce uses the same format.
"""

import hashlib
import logging
import secrets
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from linkshelf.backends.base import BookmarkBackend
from linkshelf.exceptions import AuthError
from linkshelf.schemas.bookmark import AuthSession, User
from linkshelf.services.github_oauth import GitHubOAuthClient
from linkshelf.utils import as_utc, utcnow

logger = logging.getLogger(__name__)

# ── Cookie & Lifetime Constants ───────────────────────────────────────────
SESSION_COOKIE_NAME = "auth-session"
STATE_COOKIE_NAME = "github-oauth-state"
SESSION_TTL = timedelta(days=30)
STATE_TTL_SECONDS = 60 * 10

TOKEN_BYTES = 18


def generate_state() -> str:
    """Random CSRF nonce for one OAuth round trip."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def generate_session_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_session_token(token: str) -> str:
    """Session id for a token: lowercase hex SHA-256 of its UTF-8 bytes."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def select_email(github_user: Dict[str, Any], emails: List[Dict[str, Any]]) -> str:
    """
    Pick the address to store for a GitHub account.

    Order: the primary address, then the first listed, then
    `<login>@github.com` when GitHub lists none.
    """
    for entry in emails:
        if entry.get("primary") and entry.get("email"):
            return entry["email"]
    if emails and emails[0].get("email"):
        return emails[0]["email"]
    return f"{github_user.get('login')}@github.com"


class AuthService:
    """
    Session lifecycle on top of a BookmarkBackend.

    Args:
        backend: Store holding users and sessions
        github:  OAuth client used by the login flow
    """

    def __init__(self, backend: BookmarkBackend, github: GitHubOAuthClient):
        self.backend = backend
        self.github = github

    def create_authorization_url(self) -> Tuple[str, str]:
        """
        Start a login.

        Returns:
            (authorize URL, state) — the caller stores the state in a cookie.
        """
        state = generate_state()
        return self.github.authorize_url(state), state

    async def create_session(self, token: str, user_id: str) -> AuthSession:
        session = AuthSession(
            id=hash_session_token(token),
            user_id=user_id,
            expires_at=utcnow() + SESSION_TTL,
        )
        return await self.backend.create_session(session)

    async def complete_github_login(
        self,
        code: str,
        state: str,
        stored_state: Optional[str],
    ) -> Tuple[User, AuthSession, str]:
        """
        Finish the OAuth callback.

        Args:
            code:          Authorization code from GitHub
            state:         State echoed back by GitHub
            stored_state:  State from our cookie (None if it expired)

        Returns:
            (user, session, raw session token)

        Raises:
            AuthError: State mismatch, no access token, or a GitHub call failed.
                       Nothing is stored in any of these cases.
        """
        # CSRF check: the callback must answer the redirect we issued
        # Bytes: compare_digest rejects str arguments holding non-ASCII characters
        if not state or not stored_state or not secrets.compare_digest(
            state.encode("utf-8"), stored_state.encode("utf-8")
        ):
            logger.warning("OAuth callback rejected: state mismatch")
            raise AuthError(message="Invalid state parameter")

        access_token = await self.github.exchange_code(code)
        if not access_token:
            raise AuthError(message="Failed to get GitHub access token")

        github_user = await self.github.get_user(access_token)
        emails = await self.github.get_emails(access_token)

        user = await self.backend.find_or_create_user(
            f"github-{github_user['id']}",
            select_email(github_user, emails),
        )
        token = generate_session_token()
        session = await self.create_session(token, user.id)
        logger.info("User %s logged in via GitHub", user.id)
        return user, session, token

    async def validate_session_token(
        self, token: str
    ) -> Tuple[Optional[AuthSession], Optional[User]]:
        """
        Resolve a cookie token to its session and user.

        Expired sessions are deleted on sight. Unknown, expired or orphaned
        sessions all yield (None, None).
        """
        session = await self.backend.get_session(hash_session_token(token))
        if session is None:
            return None, None

        if as_utc(session.expires_at) <= utcnow():
            await self.backend.delete_session(session.id)
            logger.info("Session for user %s expired", session.user_id)
            return None, None

        user = await self.backend.get_user_by_id(session.user_id)
        if user is None:
            return None, None
        return session, user

    async def invalidate_session(self, session_id: str) -> None:
        await self.backend.delete_session(session_id)
