"""
Public review response schemas.
"""
from datetime import date
from uuid import UUID

from pydantic import BaseModel


class RatingSummaryResponse(BaseModel):
    """``average`` is null when nobody has rated the show; clients hide the stars."""

    average: float | None = None
    rated_count: int = 0


class PublicReviewResponse(BaseModel):
    """One review as any viewer may see it."""

    id: UUID
    show_id: UUID
    username: str | None = None
    is_anonymous: bool = False
    rating: float | None = None
    review: str | None = None
    city: str | None = None
    date_seen: date | None = None
    contains_spoilers: bool = False
    spoiler_hidden: bool = False


class ShowReviewsResponse(BaseModel):
    show_id: UUID
    rating: RatingSummaryResponse
    cities: list[str]
    reviews: list[PublicReviewResponse]
