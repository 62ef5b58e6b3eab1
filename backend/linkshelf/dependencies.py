"""
LinkShelf Backend — FastAPI Dependencies
==========================================

What:  Dependency providers that hand route handlers the objects
       `create_app()` built: the backend, the auth service, the settings,
       and the resolved current user.
How:   Everything lives on `request.app.state`; handlers declare
       `Depends(get_backend)` etc. and never import a global instance.

Example usage in a route:
    @router.get("/links")
    async def list_links(backend: BookmarkBackend = Depends(get_backend)):
        return await backend.get_links()
"""

from fastapi import Depends, Request

from linkshelf.backends.base import BookmarkBackend
from linkshelf.config import Settings
from linkshelf.schemas.bookmark import User
from linkshelf.services.auth_service import AuthService


def get_backend(request: Request) -> BookmarkBackend:
    return request.app.state.backend


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_current_user(
    request: Request,
    backend: BookmarkBackend = Depends(get_backend),
) -> User:
    """
    The user a request acts as.

    The logged-in user when SessionMiddleware found a live session,
    otherwise the backend's demo user.
    """
    user = getattr(request.state, "user", None)
    if user is not None:
        return user
    return await backend.get_current_user()
