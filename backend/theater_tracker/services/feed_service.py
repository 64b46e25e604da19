"""
Activity feed + engagement business logic — reactions and comments.
"""
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from theater_tracker.db.models import (
    Activity,
    ActivityTypeEnum,
    Comment,
    ReactionTypeEnum,
    Reaction,
    Show,
    User,
    UserShow,
)
from theater_tracker.services.errors import NotFoundError, ValidationFailedError
from theater_tracker.services.spoilers import SpoilerRevealState, display_username

COMMENT_MAX_LENGTH = 1000


class ActivityNotFoundError(NotFoundError):
    code = "ACTIVITY_NOT_FOUND"


class InvalidCommentError(ValidationFailedError):
    code = "INVALID_COMMENT"


def _activity_or_raise(db: Session, activity_id: UUID) -> Activity:
    activity = db.query(Activity).filter(Activity.id == activity_id).first()
    if activity is None:
        raise ActivityNotFoundError(f"Activity {activity_id} not found")
    return activity


def _empty_counts() -> dict[str, int]:
    return {reaction_type.value: 0 for reaction_type in ReactionTypeEnum}


def _counts_by_activity(db: Session, activity_ids: list[UUID]) -> dict[UUID, dict[str, int]]:
    counts: dict[UUID, dict[str, int]] = {activity_id: _empty_counts() for activity_id in activity_ids}
    if not activity_ids:
        return counts
    rows = (
        db.query(Reaction.activity_id, Reaction.reaction_type, func.count(Reaction.id))
        .filter(Reaction.activity_id.in_(activity_ids))
        .group_by(Reaction.activity_id, Reaction.reaction_type)
        .all()
    )
    for activity_id, reaction_type, count in rows:
        counts[activity_id][ReactionTypeEnum(reaction_type).value] = int(count)
    return counts


def _viewer_reactions(db: Session, viewer_id: UUID, activity_ids: list[UUID]) -> dict[UUID, str]:
    if not activity_ids:
        return {}
    rows = (
        db.query(Reaction.activity_id, Reaction.reaction_type)
        .filter(Reaction.user_id == viewer_id, Reaction.activity_id.in_(activity_ids))
        .all()
    )
    return {activity_id: ReactionTypeEnum(reaction_type).value for activity_id, reaction_type in rows}


def _entry_summary(entry: UserShow | None, reveal_state: SpoilerRevealState) -> dict | None:
    if entry is None:
        return None
    hidden = bool(entry.contains_spoilers) and not reveal_state.is_revealed(entry.id)
    return {
        "id": entry.id,
        "rating": entry.rating,
        "review": None if hidden else entry.review,
        "city": entry.city,
        "date_seen": entry.date_seen,
        "contains_spoilers": bool(entry.contains_spoilers),
        "spoiler_hidden": hidden,
    }


def list_recent_activity(
    db: Session,
    viewer_id: UUID | None = None,
    limit: int = 50,
    reveal_state: SpoilerRevealState | None = None,
) -> list[dict]:
    """
    Most recent activity across all users, newest first.

    The feed is global, not limited to the viewer's friends. Each item is
    joined with its show, its actor and the public fields of its ledger
    entry; ``entry`` is None when that entry has since been deleted.

    Entries logged anonymously hide their author. Spoiler-flagged review
    text is withheld unless the viewer revealed that ledger entry id.
    """
    state = reveal_state or SpoilerRevealState()
    rows = (
        db.query(Activity, User, Show, UserShow)
        .join(User, User.id == Activity.user_id)
        .join(Show, Show.id == Activity.show_id)
        .outerjoin(UserShow, UserShow.id == Activity.user_show_id)
        .order_by(Activity.created_at.desc())
        .limit(limit)
        .all()
    )

    activity_ids = [activity.id for activity, _, _, _ in rows]
    counts = _counts_by_activity(db, activity_ids)
    mine = _viewer_reactions(db, viewer_id, activity_ids) if viewer_id else {}

    items = []
    for activity, actor, show, entry in rows:
        activity_type = ActivityTypeEnum(activity.activity_type)
        anonymous = (
            activity_type != ActivityTypeEnum.WANT_TO_SEE
            and entry is not None
            and bool(entry.is_anonymous)
        )
        items.append(
            {
                "id": activity.id,
                "activity_type": activity_type.value,
                "created_at": activity.created_at,
                "user_id": None if anonymous else actor.id,
                "username": display_username(actor.username, anonymous),
                "show": {
                    "id": show.id,
                    "title": show.title,
                    "photo_url": show.photo_url,
                },
                # want-to-see carries no diary fields
                "entry": None if activity_type == ActivityTypeEnum.WANT_TO_SEE else _entry_summary(entry, state),
                "entry_missing": activity.user_show_id is not None and entry is None,
                "reaction_counts": counts[activity.id],
                "viewer_reaction": mine.get(activity.id),
            }
        )
    return items


def reaction_counts(db: Session, activity_id: UUID) -> dict[str, int]:
    """Reactions per type; absent types count as zero."""
    _activity_or_raise(db, activity_id)
    return _counts_by_activity(db, [activity_id])[activity_id]


def react(
    db: Session,
    activity_id: UUID,
    user_id: UUID,
    reaction_type: ReactionTypeEnum,
) -> dict:
    """
    Toggle the caller's reaction.

    Same type again removes it; a different type replaces it (delete, then
    insert); no reaction inserts one. Afterwards the caller holds at most
    one reaction on the activity.
    """
    _activity_or_raise(db, activity_id)

    existing = (
        db.query(Reaction)
        .filter(Reaction.activity_id == activity_id, Reaction.user_id == user_id)
        .first()
    )

    current: ReactionTypeEnum | None = reaction_type
    if existing is not None:
        same = ReactionTypeEnum(existing.reaction_type) == reaction_type
        db.delete(existing)
        db.flush()
        if same:
            current = None

    if current is not None:
        db.add(Reaction(activity_id=activity_id, user_id=user_id, reaction_type=current))
    db.commit()

    return {
        "activity_id": activity_id,
        "reaction_type": current.value if current else None,
        "counts": _counts_by_activity(db, [activity_id])[activity_id],
    }


def add_comment(db: Session, activity_id: UUID, user_id: UUID, text: str) -> dict:
    """Append a comment. Whitespace-only text is rejected."""
    _activity_or_raise(db, activity_id)

    cleaned = (text or "").strip()
    if not cleaned:
        raise InvalidCommentError("Comment cannot be empty")
    if len(cleaned) > COMMENT_MAX_LENGTH:
        raise InvalidCommentError(f"Comment must be less than {COMMENT_MAX_LENGTH} characters")

    row = Comment(activity_id=activity_id, user_id=user_id, comment_text=cleaned)
    db.add(row)
    db.commit()
    db.refresh(row)

    author = db.query(User).filter(User.id == user_id).first()
    return {
        "id": row.id,
        "activity_id": row.activity_id,
        "user_id": row.user_id,
        "username": author.username if author else None,
        "comment_text": row.comment_text,
        "created_at": row.created_at,
    }


def list_comments(db: Session, activity_id: UUID) -> list[dict]:
    """Comments on an activity, oldest first."""
    _activity_or_raise(db, activity_id)
    rows = (
        db.query(Comment, User)
        .join(User, User.id == Comment.user_id)
        .filter(Comment.activity_id == activity_id)
        .order_by(Comment.created_at.asc())
        .all()
    )
    return [
        {
            "id": comment.id,
            "activity_id": comment.activity_id,
            "user_id": author.id,
            "username": author.username,
            "comment_text": comment.comment_text,
            "created_at": comment.created_at,
        }
        for comment, author in rows
    ]
