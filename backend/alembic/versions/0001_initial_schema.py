"""Initial schema — users, shows, user_shows, activities, reactions, comments, friendships

Revision ID: 0001
Revises: —
Create Date: 2025-01-01 00:00:00
"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
    ]


def _updated_at_trigger(table: str) -> None:
    op.execute(f"""
        CREATE TRIGGER trg_{table}_updated_at
        BEFORE UPDATE ON {table}
        FOR EACH ROW EXECUTE FUNCTION set_updated_at()
    """)


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────────
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")
    op.execute("CREATE EXTENSION IF NOT EXISTS citext")

    # ── Trigger function (auto-update updated_at) ─────────────────────────────
    op.execute("""
        CREATE OR REPLACE FUNCTION set_updated_at()
        RETURNS trigger
        LANGUAGE plpgsql
        AS $$
        BEGIN
          NEW.updated_at = now();
          RETURN NEW;
        END;
        $$
    """)

    # ── users ─────────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("username", sa.Text, nullable=False),
        sa.Column("email", sa.Text, nullable=False),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("is_admin", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
        sa.CheckConstraint(
            r"username ~ '^[a-zA-Z0-9_]{3,32}$'",
            name="chk_username_format",
        ),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    # citext: 'Alice' and 'alice' are the same user
    op.execute("ALTER TABLE users ALTER COLUMN username TYPE citext")
    op.execute("ALTER TABLE users ALTER COLUMN email TYPE citext")
    _updated_at_trigger("users")

    # ── shows ─────────────────────────────────────────────────────────────────
    op.create_table(
        "shows",
        sa.Column("id", UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("photo_url", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("approval_status", sa.String(20), nullable=False,
                  server_default="pending"),
        sa.Column("created_by", UUID(as_uuid=True),
                  sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("submitter_email", sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("title", name="uq_shows_title"),
        sa.CheckConstraint("length(trim(title)) >= 1", name="chk_show_title_not_blank"),
        sa.CheckConstraint(
            "approval_status IN ('pending', 'approved', 'rejected')",
            name="chk_show_approval_status",
        ),
    )
    op.create_index("ix_shows_approval_status", "shows", ["approval_status"])
    op.create_index("ix_shows_created_by", "shows", ["created_by"])
    _updated_at_trigger("shows")

    # ── user_shows ────────────────────────────────────────────────────────────
    op.create_table(
        "user_shows",
        sa.Column("id", UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", UUID(as_uuid=True),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("show_id", UUID(as_uuid=True),
                  sa.ForeignKey("shows.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("date_seen", sa.Date, nullable=True),
        sa.Column("city", sa.String(120), nullable=True),
        sa.Column("rating", sa.Numeric(2, 1), nullable=True),
        sa.Column("review", sa.Text, nullable=True),
        sa.Column("private_notes", sa.Text, nullable=True),
        sa.Column("is_anonymous", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("contains_spoilers", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "show_id", name="uq_user_show"),
        sa.CheckConstraint("status IN ('seen', 'want_to_see')", name="chk_user_show_status"),
        sa.CheckConstraint(
            "rating IS NULL OR (rating > 0 AND rating <= 5)",
            name="chk_user_show_rating_range",
        ),
        sa.CheckConstraint(
            "review IS NULL OR length(review) <= 2000",
            name="chk_user_show_review_len",
        ),
        sa.CheckConstraint(
            "private_notes IS NULL OR length(private_notes) <= 1000",
            name="chk_user_show_notes_len",
        ),
    )
    op.create_index("ix_user_shows_show_id", "user_shows", ["show_id"])
    op.execute("""
        CREATE INDEX idx_user_shows_user_status_date
          ON user_shows (user_id, status, date_seen)
    """)
    _updated_at_trigger("user_shows")

    # Public projection of seen entries: no private_notes, no user_id,
    # username hidden for anonymous entries.
    op.execute("""
        CREATE VIEW public_reviews AS
        SELECT us.id,
               us.show_id,
               us.rating,
               us.review,
               us.city,
               us.date_seen,
               us.is_anonymous,
               us.contains_spoilers,
               us.created_at,
               CASE WHEN us.is_anonymous THEN NULL ELSE u.username END AS username
          FROM user_shows us
          JOIN users u ON u.id = us.user_id
         WHERE us.status = 'seen'
    """)

    # ── activities ────────────────────────────────────────────────────────────
    op.create_table(
        "activities",
        sa.Column("id", UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", UUID(as_uuid=True),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("show_id", UUID(as_uuid=True),
                  sa.ForeignKey("shows.id", ondelete="CASCADE"), nullable=False),
        sa.Column("activity_type", sa.String(20), nullable=False),
        # no FK: the entry may be deleted while the activity lives on
        sa.Column("user_show_id", UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "activity_type IN ('seen', 'review', 'want_to_see')",
            name="chk_activity_type",
        ),
    )
    op.create_index("idx_activities_created_at", "activities", ["created_at"])
    op.create_index("ix_activities_user_id", "activities", ["user_id"])
    op.create_index("ix_activities_user_show_id", "activities", ["user_show_id"])

    # ── reactions ─────────────────────────────────────────────────────────────
    op.create_table(
        "reactions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("activity_id", UUID(as_uuid=True),
                  sa.ForeignKey("activities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reaction_type", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("activity_id", "user_id", name="uq_reaction_user_activity"),
        sa.CheckConstraint(
            "reaction_type IN ('like', 'love', 'clap')",
            name="chk_reaction_type",
        ),
    )

    # ── comments ──────────────────────────────────────────────────────────────
    op.create_table(
        "comments",
        sa.Column("id", UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("activity_id", UUID(as_uuid=True),
                  sa.ForeignKey("activities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("comment_text", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "length(trim(comment_text)) >= 1 AND length(comment_text) <= 1000",
            name="chk_comment_text_len",
        ),
    )
    op.create_index("idx_comments_activity_created", "comments", ["activity_id", "created_at"])

    # ── friendships ───────────────────────────────────────────────────────────
    op.create_table(
        "friendships",
        sa.Column("id", UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("requester_id", UUID(as_uuid=True),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("addressee_id", UUID(as_uuid=True),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        *_timestamps(),
        sa.UniqueConstraint("requester_id", "addressee_id", name="uq_friendship_edge"),
        sa.CheckConstraint("requester_id <> addressee_id", name="chk_no_self_friendship"),
        sa.CheckConstraint("status IN ('pending', 'accepted')", name="chk_friendship_status"),
    )
    op.create_index("ix_friendships_addressee_id", "friendships", ["addressee_id"])
    # One edge per unordered pair, whichever side sent it
    op.execute("""
        CREATE UNIQUE INDEX uq_friendships_pair
          ON friendships (LEAST(requester_id, addressee_id), GREATEST(requester_id, addressee_id))
    """)
    _updated_at_trigger("friendships")


def downgrade() -> None:
    op.drop_table("friendships")
    op.drop_table("comments")
    op.drop_table("reactions")
    op.drop_table("activities")
    op.execute("DROP VIEW IF EXISTS public_reviews")
    op.drop_table("user_shows")
    op.drop_table("shows")
    op.drop_table("users")
    op.execute("DROP FUNCTION IF EXISTS set_updated_at()")
