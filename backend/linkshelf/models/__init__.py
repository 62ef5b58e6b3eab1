"""
LinkShelf Backend — ORM Models
================================

Relational rows for the SQL backend. Importing this package registers every
table on `linkshelf.database.Base.metadata` (Alembic and `create_all` rely
on that).

Tables:
    user        ← models.user.User
    session     ← models.user.AuthSession
    link        ← models.link.Link
    link_label  ← models.link.LinkLabel
    note        ← models.note.Note
    label       ← models.label.Label
"""

from linkshelf.models.label import Label
from linkshelf.models.link import Link, LinkLabel
from linkshelf.models.note import Note
from linkshelf.models.user import AuthSession, User

__all__ = ["AuthSession", "Label", "Link", "LinkLabel", "Note", "User"]
