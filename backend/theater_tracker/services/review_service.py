"""
Public review aggregation.

Everything here reads through ``public_reviews_query``, which selects only
the fields of a ledger entry that are safe to show other users. Private
notes never leave the ledger.
"""
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import case, func, null
from sqlalchemy.orm import Query, Session

from theater_tracker.db.models import ShowStatusEnum, User, UserShow
from theater_tracker.services.show_service import approved_show_or_raise
from theater_tracker.services.spoilers import SpoilerRevealState, present_review


@dataclass(frozen=True)
class RatingSummary:
    """Mean star rating of a show. ``average`` is None when nobody rated it."""

    average: float | None
    rated_count: int

    @property
    def has_ratings(self) -> bool:
        return self.rated_count > 0


def public_reviews_query(db: Session) -> Query:
    """
    The public-review projection.

    Mirrors the ``public_reviews`` view from the migrations: username is
    NULL for anonymous entries and private_notes is not selected.
    """
    username = case(
        (UserShow.is_anonymous.is_(True), null()),
        else_=User.username,
    ).label("username")

    return (
        db.query(
            UserShow.id.label("id"),
            UserShow.show_id.label("show_id"),
            UserShow.rating.label("rating"),
            UserShow.review.label("review"),
            UserShow.city.label("city"),
            UserShow.date_seen.label("date_seen"),
            UserShow.is_anonymous.label("is_anonymous"),
            UserShow.contains_spoilers.label("contains_spoilers"),
            UserShow.created_at.label("created_at"),
            username,
        )
        .join(User, User.id == UserShow.user_id)
        .filter(UserShow.status == ShowStatusEnum.SEEN)
    )


def average_rating(db: Session, show_id: UUID) -> RatingSummary:
    """Mean of non-null ratings over every entry of the show, review text or not."""
    avg_value, rated_count = (
        db.query(func.avg(UserShow.rating), func.count(UserShow.rating))
        .filter(UserShow.show_id == show_id, UserShow.rating.isnot(None))
        .one()
    )
    rated_count = int(rated_count or 0)
    if rated_count == 0:
        return RatingSummary(average=None, rated_count=0)
    return RatingSummary(average=round(float(avg_value), 2), rated_count=rated_count)


def rating_for_show(db: Session, show_id: UUID) -> RatingSummary:
    """average_rating for an approved show; raises ShowNotFoundError otherwise."""
    approved_show_or_raise(db, show_id)
    return average_rating(db, show_id)


def list_review_cities(db: Session, show_id: UUID) -> list[str]:
    """Distinct cities among the show's public entries, for the city filter."""
    rows = (
        public_reviews_query(db)
        .filter(UserShow.show_id == show_id, UserShow.city.isnot(None))
        .with_entities(UserShow.city)
        .distinct()
        .order_by(UserShow.city.asc())
        .all()
    )
    return [row.city for row in rows]


def get_reviews_for_show(
    db: Session,
    show_id: UUID,
    city_filter: str | None = None,
    reveal_state: SpoilerRevealState | None = None,
) -> dict:
    """
    Reviews of a show, newest performance first.

    Only rows with review text are listed; rating-only rows still count
    toward the rating summary, which ignores the city filter.
    """
    approved_show_or_raise(db, show_id)

    query = public_reviews_query(db).filter(
        UserShow.show_id == show_id,
        UserShow.review.isnot(None),
        func.length(func.trim(UserShow.review)) > 0,
    )
    if city_filter:
        query = query.filter(UserShow.city == city_filter)

    rows = query.order_by(UserShow.date_seen.desc(), UserShow.created_at.desc()).all()
    summary = average_rating(db, show_id)

    return {
        "show_id": show_id,
        "rating": {"average": summary.average, "rated_count": summary.rated_count},
        "cities": list_review_cities(db, show_id),
        "reviews": [present_review(row._mapping, reveal_state) for row in rows],
    }
