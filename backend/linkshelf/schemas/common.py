"""
LinkShelf Backend — Envelope & Operational Schemas
====================================================

What:  Response shapes that are not domain entities: mutation
       acknowledgements, the uniform error body, the auth status body and the
       health report.
"""

from typing import Optional

from pydantic import Field

from linkshelf.schemas.bookmark import CamelModel


class SuccessResponse(CamelModel):
    """Returned by delete and association endpoints on success."""
    success: bool = True


class ErrorResponse(CamelModel):
    """
    Uniform error body for every JSON endpoint.

    Example:
        {"error": "Link not found", "request_id": "550e8400-..."}

    `request_id` matches the X-Request-ID response header and the server
    log lines for the same request.
    """
    error: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(
        default=None,
        serialization_alias="request_id",
        description="Request correlation ID",
    )


class AuthUser(CamelModel):
    id: str
    email: str


class AuthMeResponse(CamelModel):
    """Body of GET /api/auth/me."""
    authenticated: bool
    user: Optional[AuthUser] = None


class HealthResponse(CamelModel):
    """
    What:  Health check response for monitoring.
    Who:   Returned by GET /health.

    Fields:
        status:          "healthy" or "degraded" (store unreachable)
        version:         Application version string
        backend:         Which store serves requests: "mock" or "sql"
        uptime_seconds:  Seconds since the app was created
    """
    status: str = Field(description="Overall health: healthy or degraded")
    version: str = Field(description="Application version")
    backend: str = Field(description="Active persistence backend: mock or sql")
    uptime_seconds: float = Field(
        serialization_alias="uptime_seconds",
        description="Seconds since server start",
    )
