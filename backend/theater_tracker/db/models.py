"""
SQLAlchemy ORM models.

Column names, constraints and indexes mirror the Alembic migrations.
Enum-valued columns are stored as short strings guarded by CHECK
constraints, so the same models run on Postgres and on SQLite in tests.

Relationships are declared here so services can navigate the graph
without writing raw joins everywhere.
"""
import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import DeclarativeBase, relationship


# ── Base ──────────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


# ── Enums ─────────────────────────────────────────────────────────────────────

class ApprovalStatusEnum(str, PyEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ShowStatusEnum(str, PyEnum):
    SEEN = "seen"
    WANT_TO_SEE = "want_to_see"


class ActivityTypeEnum(str, PyEnum):
    SEEN = "seen"
    REVIEW = "review"
    WANT_TO_SEE = "want_to_see"


class ReactionTypeEnum(str, PyEnum):
    LIKE = "like"
    LOVE = "love"
    CLAP = "clap"


class FriendshipStatusEnum(str, PyEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"


def _string_enum(enum_cls: type[PyEnum], name: str) -> SAEnum:
    """Store the enum *value* (lowercase) as VARCHAR rather than a native type."""
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
    )


# ── Timestamp helper ──────────────────────────────────────────────────────────

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Models ────────────────────────────────────────────────────────────────────

class User(Base):
    """
    Application user and public profile.

    username / email are case-insensitive in Postgres (citext extension).
    SQLAlchemy uses String here; the migration DDL uses the native CITEXT type.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(
        String(32),
        unique=True,
        nullable=False,
        index=True,
        comment="Case-insensitive username (3-32 chars, alphanumeric + underscore)",
    )
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    # Relationships
    show_entries = relationship(
        "UserShow",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )
    submitted_shows = relationship("Show", back_populates="submitter")

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"


class Show(Base):
    """
    One theatrical production in the catalog.

    Submissions start out pending; an admin moves them to approved or
    rejected, both terminal. Only approved shows are browsable.
    """
    __tablename__ = "shows"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(200), unique=True, nullable=False, index=True)
    photo_url = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    approval_status = Column(
        _string_enum(ApprovalStatusEnum, "approval_status"),
        nullable=False,
        default=ApprovalStatusEnum.PENDING,
        index=True,
    )
    created_by = Column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    submitter_email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("length(trim(title)) >= 1", name="chk_show_title_not_blank"),
        CheckConstraint(
            "approval_status IN ('pending', 'approved', 'rejected')",
            name="chk_show_approval_status",
        ),
    )

    # Relationships
    submitter = relationship("User", back_populates="submitted_shows")
    entries = relationship("UserShow", back_populates="show", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Show id={self.id} title={self.title!r} status={self.approval_status}>"


class UserShow(Base):
    """
    A user's ledger entry for a show: seen (with diary fields) or want-to-see.

    rating — 0.5 steps in (0, 5]; NULL means "no rating". A zero from the
             client is normalised to NULL by the diary service.
    """
    __tablename__ = "user_shows"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    show_id = Column(
        Uuid,
        ForeignKey("shows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(_string_enum(ShowStatusEnum, "user_show_status"), nullable=False)
    date_seen = Column(Date, nullable=True)
    city = Column(String(120), nullable=True)
    rating = Column(Numeric(2, 1, asdecimal=False), nullable=True)
    review = Column(Text, nullable=True)
    private_notes = Column(Text, nullable=True)
    is_anonymous = Column(Boolean, default=False, nullable=False)
    contains_spoilers = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        # A user has at most one entry per show
        UniqueConstraint("user_id", "show_id", name="uq_user_show"),
        Index("idx_user_shows_user_status_date", "user_id", "status", "date_seen"),
        CheckConstraint(
            "status IN ('seen', 'want_to_see')",
            name="chk_user_show_status",
        ),
        CheckConstraint(
            "rating IS NULL OR (rating > 0 AND rating <= 5)",
            name="chk_user_show_rating_range",
        ),
        CheckConstraint(
            "review IS NULL OR length(review) <= 2000",
            name="chk_user_show_review_len",
        ),
        CheckConstraint(
            "private_notes IS NULL OR length(private_notes) <= 1000",
            name="chk_user_show_notes_len",
        ),
    )

    # Relationships
    user = relationship("User", back_populates="show_entries")
    show = relationship("Show", back_populates="entries")

    def __repr__(self) -> str:
        return f"<UserShow user={self.user_id} show={self.show_id} status={self.status}>"


class Activity(Base):
    """
    Immutable feed record of a user action.

    user_show_id is not a foreign key: deleting the ledger
    entry leaves the id behind and readers see the entry as missing.
    """
    __tablename__ = "activities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    show_id = Column(
        Uuid,
        ForeignKey("shows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    activity_type = Column(_string_enum(ActivityTypeEnum, "activity_type"), nullable=False)
    user_show_id = Column(Uuid, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_activities_created_at", "created_at"),
        CheckConstraint(
            "activity_type IN ('seen', 'review', 'want_to_see')",
            name="chk_activity_type",
        ),
    )

    # Relationships
    user = relationship("User")
    show = relationship("Show")
    reactions = relationship("Reaction", back_populates="activity", cascade="all, delete-orphan")
    comments = relationship(
        "Comment",
        back_populates="activity",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )

    def __repr__(self) -> str:
        return f"<Activity id={self.id} type={self.activity_type} user={self.user_id}>"


class Reaction(Base):
    """One typed reaction per user per activity."""
    __tablename__ = "reactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    activity_id = Column(
        Uuid,
        ForeignKey("activities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reaction_type = Column(_string_enum(ReactionTypeEnum, "reaction_type"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("activity_id", "user_id", name="uq_reaction_user_activity"),
        CheckConstraint(
            "reaction_type IN ('like', 'love', 'clap')",
            name="chk_reaction_type",
        ),
    )

    # Relationships
    activity = relationship("Activity", back_populates="reactions")
    user = relationship("User")


class Comment(Base):
    """Append-only comment on an activity."""
    __tablename__ = "comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    activity_id = Column(
        Uuid,
        ForeignKey("activities.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    comment_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_comments_activity_created", "activity_id", "created_at"),
        CheckConstraint(
            "length(trim(comment_text)) >= 1 AND length(comment_text) <= 1000",
            name="chk_comment_text_len",
        ),
    )

    # Relationships
    activity = relationship("Activity", back_populates="comments")
    user = relationship("User")


class Friendship(Base):
    """
    Directed friendship edge: requester → addressee.

    Two users are friends when an accepted edge exists in either direction.
    """
    __tablename__ = "friendships"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    requester_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    addressee_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(
        _string_enum(FriendshipStatusEnum, "friendship_status"),
        nullable=False,
        default=FriendshipStatusEnum.PENDING,
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("requester_id", "addressee_id", name="uq_friendship_edge"),
        CheckConstraint("requester_id <> addressee_id", name="chk_no_self_friendship"),
        CheckConstraint(
            "status IN ('pending', 'accepted')",
            name="chk_friendship_status",
        ),
    )

    # Relationships
    requester = relationship("User", foreign_keys=[requester_id])
    addressee = relationship("User", foreign_keys=[addressee_id])

    def __repr__(self) -> str:
        return f"<Friendship {self.requester_id} → {self.addressee_id} {self.status}>"
