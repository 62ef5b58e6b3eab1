"""
LinkShelf Backend — GitHub OAuth Client
=========================================

What:  Thin async client for the three GitHub calls the login flow needs:
       code → access token, token → profile, token → email addresses.
How:   One short-lived httpx.AsyncClient per login. Any transport or HTTP
       status failure is translated into AuthError so the callback route
       can redirect the browser to the login page.
Who:   Used by AuthService.complete_github_login().

Endpoints:
    POST https://github.com/login/oauth/access_token   (JSON in, JSON out)
    GET  https://api.github.com/user                   (Bearer token)
    GET  https://api.github.com/user/emails            (Bearer token, needs user:email)
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from linkshelf.exceptions import AuthError

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
ACCESS_TOKEN_URL = "https://github.com/login/oauth/access_token"
API_BASE_URL = "https://api.github.com"
OAUTH_SCOPE = "user:email"


class GitHubOAuthClient:
    """
    GitHub OAuth app credentials plus the calls made with them.

    Args:
        client_id:      OAuth app client id
        client_secret:  OAuth app client secret
        redirect_uri:   Callback URL registered with the OAuth app
        transport:      Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self._transport = transport

    def authorize_url(self, state: str) -> str:
        """URL of GitHub's consent page, carrying the CSRF `state`."""
        query = urlencode({
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": state,
            "scope": OAUTH_SCOPE,
        })
        return f"{AUTHORIZE_URL}?{query}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning("GitHub %s %s returned %d", method, url, e.response.status_code)
            raise AuthError(
                message=f"GitHub request failed with status {e.response.status_code}",
                context={"url": url},
            ) from e
        except httpx.HTTPError as e:
            logger.warning("GitHub %s %s failed: %s", method, url, str(e))
            raise AuthError(
                message="Could not reach GitHub",
                context={"url": url, "error_type": type(e).__name__},
            ) from e

    async def exchange_code(self, code: str) -> Optional[str]:
        """
        Trade an authorization code for an access token.

        Returns:
            The access token, or None when GitHub answered without one
            (expired or reused code). GitHub reports those as 200 + error body.
        """
        data = await self._request(
            "POST",
            ACCESS_TOKEN_URL,
            json={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "redirect_uri": self.redirect_uri,
            },
        )
        if "error" in data:
            logger.warning("GitHub token exchange refused: %s", data.get("error"))
        return data.get("access_token")

    async def get_user(self, access_token: str) -> Dict[str, Any]:
        return await self._request(
            "GET",
            f"{API_BASE_URL}/user",
            headers={"Authorization": f"Bearer {access_token}"},
        )

    async def get_emails(self, access_token: str) -> List[Dict[str, Any]]:
        return await self._request(
            "GET",
            f"{API_BASE_URL}/user/emails",
            headers={"Authorization": f"Bearer {access_token}"},
        )
