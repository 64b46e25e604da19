"""
Reviews API — /reviews
──────────────────────
Read-only public reviews of a show.

Endpoints:
  GET /reviews/show/{show_id}          — Reviews + rating summary + city list
  GET /reviews/show/{show_id}/rating   — Rating summary only

Spoiler-flagged review text is withheld unless the client lists the
review id in ``reveal``. The client owns that set for its session; the
server never stores it.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from theater_tracker.api.errors import to_http
from theater_tracker.db.session import get_db
from theater_tracker.schemas.reviews import RatingSummaryResponse, ShowReviewsResponse
from theater_tracker.services.errors import TheaterError
from theater_tracker.services.review_service import get_reviews_for_show, rating_for_show
from theater_tracker.services.spoilers import SpoilerRevealState

router = APIRouter()


@router.get("/show/{show_id}", response_model=ShowReviewsResponse)
def show_reviews(
    show_id: UUID,
    city: str | None = Query(None, max_length=120, description="Exact city match"),
    reveal: list[UUID] = Query([], description="Review ids whose spoilers to show"),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return get_reviews_for_show(
            db,
            show_id,
            city_filter=city,
            reveal_state=SpoilerRevealState(reveal),
        )
    except TheaterError as exc:
        raise to_http(exc) from exc


@router.get("/show/{show_id}/rating", response_model=RatingSummaryResponse)
def show_rating(show_id: UUID, db: Session = Depends(get_db)) -> dict:
    try:
        summary = rating_for_show(db, show_id)
    except TheaterError as exc:
        raise to_http(exc) from exc
    return {"average": summary.average, "rated_count": summary.rated_count}
