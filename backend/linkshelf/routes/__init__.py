"""
LinkShelf Backend — Routes Package
====================================

Route Inventory:
    - links.py:   /api/links, /api/links/{id}, /api/links/{id}/full,
                  /api/links/{id}/labels/{label_id}
    - notes.py:   /api/notes, /api/notes/{id}
    - labels.py:  /api/labels, /api/labels/{id}, /api/labels/{id}/links
    - auth.py:    /auth/github, /auth/callback/github, /auth/logout, /api/auth/me
    - health.py:  /health

Handlers stay thin: parse input, make one backend call, map an absent
result to 404/400. Everything else lives in backends and services.
"""
