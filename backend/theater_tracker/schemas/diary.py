"""
Ledger / diary request/response schemas.
"""
from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from theater_tracker.schemas.shows import ShowSummary


class MarkSeenRequest(BaseModel):
    """Payload for POST /diary/seen."""

    show_id: UUID
    date_seen: date
    city: str = Field(..., min_length=1, max_length=120)
    rating: float | None = Field(default=None, ge=0, le=5)
    review: str | None = Field(default=None, max_length=2000)
    private_notes: str | None = Field(default=None, max_length=1000)
    is_anonymous: bool = False
    contains_spoilers: bool = False


class MarkWantToSeeRequest(BaseModel):
    """Payload for POST /diary/want-to-see."""

    show_id: UUID


class UpdateDiaryEntryRequest(BaseModel):
    """Replacement diary fields. A rating of 0 clears the rating."""

    rating: float | None = Field(default=None, ge=0, le=5)
    review: str | None = Field(default=None, max_length=2000)
    private_notes: str | None = Field(default=None, max_length=1000)
    contains_spoilers: bool = False


class DiaryEntryResponse(BaseModel):
    """A ledger entry as its owner sees it, private notes included."""

    id: UUID
    show: ShowSummary
    status: Literal["seen", "want_to_see"]
    date_seen: date | None = None
    city: str | None = None
    rating: float | None = None
    review: str | None = None
    private_notes: str | None = None
    is_anonymous: bool = False
    contains_spoilers: bool = False
    created_at: datetime


class LoggedEntryResponse(BaseModel):
    """Returned after seen / want-to-see: the entry and the activity it produced."""

    entry: DiaryEntryResponse
    activity_id: UUID
    activity_type: Literal["seen", "review", "want_to_see"]


class MyShowsResponse(BaseModel):
    seen: list[DiaryEntryResponse]
    want_to_see: list[DiaryEntryResponse]
