"""
LinkShelf Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [Session] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation id for every log line and error body
    2. Logging:    method, path, status and duration, tagged with the id
    3. Session:    resolves the auth-session cookie into request.state.user

    Responses travel back through the same chain in reverse, so the
    X-Request-ID header and the access log see the final status code.
"""
