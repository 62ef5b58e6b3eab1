"""Create bookmark tables

Revision ID: 001
Revises: None
Create Date: 2025-03-01 00:00:00.000000+00:00

What:  Creates the six LinkShelf tables: user, session, link, note, label
       and link_label, plus the per-owner lookup indexes.
How:   Text primary keys throughout (UUID strings for content rows,
       provider-qualified ids for users, SHA-256 hex for sessions).

Rollback: downgrade() drops every table (destructive — all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_user"),
        sa.UniqueConstraint("email", name="uq_user_email"),
    )

    op.create_table(
        "session",
        sa.Column(
            "id",
            sa.String(64),
            nullable=False,
            comment="Hex SHA-256 of the session token",
        ),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_session"),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], name="fk_session_user"),
    )

    op.create_table(
        "link",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_permanent", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("is_public", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_link"),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], name="fk_link_user"),
    )
    op.create_index("idx_link_user_id", "link", ["user_id"])

    op.create_table(
        "note",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("link_id", sa.String(36), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_published", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_note"),
        sa.ForeignKeyConstraint(["link_id"], ["link.id"], name="fk_note_link"),
    )
    op.create_index("idx_note_link_id", "note", ["link_id"])

    op.create_table(
        "label",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_label"),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], name="fk_label_user"),
    )
    op.create_index("idx_label_user_id", "label", ["user_id"])

    op.create_table(
        "link_label",
        sa.Column("link_id", sa.String(36), nullable=False),
        sa.Column("label_id", sa.String(36), nullable=False),
        sa.PrimaryKeyConstraint("link_id", "label_id", name="pk_link_label"),
        sa.ForeignKeyConstraint(["link_id"], ["link.id"], name="fk_link_label_link"),
        sa.ForeignKeyConstraint(["label_id"], ["label.id"], name="fk_link_label_label"),
    )


def downgrade() -> None:
    op.drop_table("link_label")
    op.drop_index("idx_label_user_id", table_name="label")
    op.drop_table("label")
    op.drop_index("idx_note_link_id", table_name="note")
    op.drop_table("note")
    op.drop_index("idx_link_user_id", table_name="link")
    op.drop_table("link")
    op.drop_table("session")
    op.drop_table("user")
