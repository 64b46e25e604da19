"""
User-show ledger business logic — seen / want-to-see entries and the diary.

Creating an entry is two commits: the ledger row, then its activity
record. A failure between them leaves an entry with no activity.
"""
import logging
from datetime import date
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from theater_tracker.db.models import (
    Activity,
    ActivityTypeEnum,
    Show,
    ShowStatusEnum,
    UserShow,
)
from theater_tracker.services.errors import (
    DuplicateError,
    NotFoundError,
    PermissionDeniedError,
    TransientStoreError,
    ValidationFailedError,
    is_unique_violation,
)
from theater_tracker.services.show_service import approved_show_or_raise

logger = logging.getLogger(__name__)

REVIEW_MAX_LENGTH = 2000
PRIVATE_NOTES_MAX_LENGTH = 1000
CITY_MAX_LENGTH = 120
RATING_MAX = 5.0
RATING_STEP = 0.5


class DuplicateEntryError(DuplicateError):
    code = "DUPLICATE_ENTRY"


class EntryNotFoundError(NotFoundError):
    code = "ENTRY_NOT_FOUND"


class NotEntryOwnerError(PermissionDeniedError):
    code = "NOT_ENTRY_OWNER"


class InvalidEntryError(ValidationFailedError):
    code = "INVALID_ENTRY"


# ── Validation helpers ────────────────────────────────────────────────────────

def normalize_rating(rating: float | None) -> float | None:
    """
    Validate a star rating and map "no rating" to None.

    Accepts 0-5 in half-star steps; 0 means the user cleared the rating.
    """
    if rating is None:
        return None
    value = float(rating)
    if value < 0 or value > RATING_MAX:
        raise InvalidEntryError("Rating must be between 0 and 5")
    if (value / RATING_STEP) != int(value / RATING_STEP):
        raise InvalidEntryError("Rating must be in half-star steps")
    return value if value > 0 else None


def _optional_text(value: str | None, limit: int, label: str) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    if len(trimmed) > limit:
        raise InvalidEntryError(f"{label} must be less than {limit} characters")
    return trimmed or None


def _required_city(city: str | None) -> str:
    cleaned = (city or "").strip()
    if not cleaned:
        raise InvalidEntryError("City is required")
    if len(cleaned) > CITY_MAX_LENGTH:
        raise InvalidEntryError(f"City must be less than {CITY_MAX_LENGTH} characters")
    return cleaned


def activity_type_for_entry(entry: UserShow) -> ActivityTypeEnum:
    """The feed verb for a freshly created entry."""
    if entry.status == ShowStatusEnum.WANT_TO_SEE:
        return ActivityTypeEnum.WANT_TO_SEE
    if entry.review:
        return ActivityTypeEnum.REVIEW
    return ActivityTypeEnum.SEEN


# ── Internal writes ───────────────────────────────────────────────────────────

def _insert_entry(db: Session, entry: UserShow) -> UserShow:
    db.add(entry)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise DuplicateEntryError("You've already added this show") from exc
        raise TransientStoreError("Could not save the entry") from exc
    db.commit()
    db.refresh(entry)
    return entry


def _record_activity(db: Session, entry: UserShow) -> Activity:
    activity = Activity(
        user_id=entry.user_id,
        show_id=entry.show_id,
        activity_type=activity_type_for_entry(entry),
        user_show_id=entry.id,
    )
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity


def _owned_entry_or_raise(db: Session, user_id: UUID, entry_id: UUID) -> UserShow:
    entry = db.query(UserShow).filter(UserShow.id == entry_id).first()
    if entry is None:
        raise EntryNotFoundError(f"Entry {entry_id} not found")
    if entry.user_id != user_id:
        raise NotEntryOwnerError("You can only change your own entries")
    return entry


# ── Service functions ─────────────────────────────────────────────────────────

def mark_seen(
    db: Session,
    user_id: UUID,
    show_id: UUID,
    date_seen: date | None,
    city: str | None,
    rating: float | None = None,
    review: str | None = None,
    private_notes: str | None = None,
    is_anonymous: bool = False,
    contains_spoilers: bool = False,
) -> tuple[UserShow, Activity]:
    """
    Log a show as seen with its diary fields, then emit the activity.

    The activity is a "review" when review text was given, else "seen".
    Raises DuplicateEntryError if the user already has an entry for the show.
    """
    if date_seen is None:
        raise InvalidEntryError("Date seen is required")
    cleaned_city = _required_city(city)
    approved_show_or_raise(db, show_id)

    entry = UserShow(
        user_id=user_id,
        show_id=show_id,
        status=ShowStatusEnum.SEEN,
        date_seen=date_seen,
        city=cleaned_city,
        rating=normalize_rating(rating),
        review=_optional_text(review, REVIEW_MAX_LENGTH, "Review"),
        private_notes=_optional_text(private_notes, PRIVATE_NOTES_MAX_LENGTH, "Private notes"),
        is_anonymous=is_anonymous,
        contains_spoilers=contains_spoilers,
    )
    entry = _insert_entry(db, entry)
    activity = _record_activity(db, entry)
    logger.info("User %s logged show %s as %s", user_id, show_id, activity.activity_type.value)
    return entry, activity


def mark_want_to_see(db: Session, user_id: UUID, show_id: UUID) -> tuple[UserShow, Activity]:
    """Add a show to the user's want-to-see list and emit the activity."""
    approved_show_or_raise(db, show_id)
    entry = _insert_entry(
        db,
        UserShow(user_id=user_id, show_id=show_id, status=ShowStatusEnum.WANT_TO_SEE),
    )
    activity = _record_activity(db, entry)
    return entry, activity


def update_diary_entry(
    db: Session,
    user_id: UUID,
    entry_id: UUID,
    rating: float | None = None,
    review: str | None = None,
    private_notes: str | None = None,
    contains_spoilers: bool = False,
) -> UserShow:
    """
    Replace the editable diary fields of an entry.

    Empty text and a zero rating are stored as NULL. Activities are left
    untouched, so a "seen" activity stays "seen" after a review is added.
    """
    entry = _owned_entry_or_raise(db, user_id, entry_id)
    if entry.status != ShowStatusEnum.SEEN:
        raise InvalidEntryError("Only seen entries have diary fields")

    entry.rating = normalize_rating(rating)
    entry.review = _optional_text(review, REVIEW_MAX_LENGTH, "Review")
    entry.private_notes = _optional_text(private_notes, PRIVATE_NOTES_MAX_LENGTH, "Private notes")
    entry.contains_spoilers = contains_spoilers
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def delete_diary_entry(db: Session, user_id: UUID, entry_id: UUID) -> bool:
    """
    Delete an entry.

    Activities, reactions and comments that point at it are kept; feed
    readers see the activity with no entry.
    """
    entry = _owned_entry_or_raise(db, user_id, entry_id)
    db.delete(entry)
    db.commit()
    return True


def _entry_dict(entry: UserShow, show: Show) -> dict:
    return {
        "id": entry.id,
        "show": {
            "id": show.id,
            "title": show.title,
            "photo_url": show.photo_url,
            "description": show.description,
        },
        "status": ShowStatusEnum(entry.status).value,
        "date_seen": entry.date_seen,
        "city": entry.city,
        "rating": entry.rating,
        "review": entry.review,
        "private_notes": entry.private_notes,
        "is_anonymous": bool(entry.is_anonymous),
        "contains_spoilers": bool(entry.contains_spoilers),
        "created_at": entry.created_at,
    }


def get_entry(db: Session, user_id: UUID, entry_id: UUID) -> dict:
    entry = _owned_entry_or_raise(db, user_id, entry_id)
    return _entry_dict(entry, entry.show)


def list_diary(db: Session, user_id: UUID, date_filter: date | None = None) -> list[dict]:
    """Seen entries with a date, newest first, optionally for one calendar day."""
    query = (
        db.query(UserShow, Show)
        .join(Show, Show.id == UserShow.show_id)
        .filter(
            UserShow.user_id == user_id,
            UserShow.status == ShowStatusEnum.SEEN,
            UserShow.date_seen.isnot(None),
        )
    )
    if date_filter is not None:
        query = query.filter(UserShow.date_seen == date_filter)

    rows = query.order_by(UserShow.date_seen.desc(), UserShow.created_at.desc()).all()
    return [_entry_dict(entry, show) for entry, show in rows]


def list_my_shows(db: Session, user_id: UUID) -> dict:
    """Both ledger lists for the "My Shows" page."""
    seen_rows = (
        db.query(UserShow, Show)
        .join(Show, Show.id == UserShow.show_id)
        .filter(UserShow.user_id == user_id, UserShow.status == ShowStatusEnum.SEEN)
        .order_by(UserShow.date_seen.desc(), UserShow.created_at.desc())
        .all()
    )
    want_rows = (
        db.query(UserShow, Show)
        .join(Show, Show.id == UserShow.show_id)
        .filter(UserShow.user_id == user_id, UserShow.status == ShowStatusEnum.WANT_TO_SEE)
        .order_by(UserShow.created_at.desc())
        .all()
    )
    return {
        "seen": [_entry_dict(entry, show) for entry, show in seen_rows],
        "want_to_see": [_entry_dict(entry, show) for entry, show in want_rows],
    }
