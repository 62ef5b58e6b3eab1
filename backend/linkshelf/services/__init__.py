"""
LinkShelf Backend — Services Layer
====================================

Service Inventory:
    - GitHubOAuthClient: token exchange and profile/email lookups (httpx)
    - AuthService:       session issuance, validation and invalidation on
                         top of the active backend

Bookmark CRUD has no service layer of its own: route handlers call the
BookmarkBackend directly.
"""
