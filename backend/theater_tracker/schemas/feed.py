"""
Activity feed + engagement schemas.

Feed items are a tagged union on ``activity_type``: want-to-see items
never carry diary fields, seen/review items may (``entry`` is null once
the underlying ledger entry is deleted).
"""
from datetime import date, datetime
from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field

from theater_tracker.db.models import ReactionTypeEnum


class FeedShow(BaseModel):
    id: UUID
    title: str
    photo_url: str


class FeedEntry(BaseModel):
    """Public fields of the ledger entry behind an activity."""

    id: UUID | None = None
    rating: float | None = None
    review: str | None = None
    city: str | None = None
    date_seen: date | None = None
    contains_spoilers: bool = False
    spoiler_hidden: bool = False


class ReactionCounts(BaseModel):
    like: int = 0
    love: int = 0
    clap: int = 0


class _FeedItemBase(BaseModel):
    id: UUID
    created_at: datetime
    user_id: UUID | None = None
    username: str
    show: FeedShow
    reaction_counts: ReactionCounts = Field(default_factory=ReactionCounts)
    viewer_reaction: Literal["like", "love", "clap"] | None = None


class SeenFeedItem(_FeedItemBase):
    activity_type: Literal["seen"]
    entry: FeedEntry | None = None
    entry_missing: bool = False


class ReviewFeedItem(_FeedItemBase):
    activity_type: Literal["review"]
    entry: FeedEntry | None = None
    entry_missing: bool = False


class WantToSeeFeedItem(_FeedItemBase):
    activity_type: Literal["want_to_see"]


FeedItemResponse = Annotated[
    Union[SeenFeedItem, ReviewFeedItem, WantToSeeFeedItem],
    Field(discriminator="activity_type"),
]


class ReactRequest(BaseModel):
    reaction_type: ReactionTypeEnum


class ReactionStateResponse(BaseModel):
    """The caller's reaction after a toggle (null when removed) and fresh counts."""

    activity_id: UUID
    reaction_type: Literal["like", "love", "clap"] | None = None
    counts: ReactionCounts


class CreateCommentRequest(BaseModel):
    comment_text: str = Field(..., min_length=1, max_length=1000)


class CommentResponse(BaseModel):
    id: UUID
    activity_id: UUID
    user_id: UUID
    username: str | None = None
    comment_text: str
    created_at: datetime
