"""
Feed API — /feed
────────────────
Activity feed, reactions and comments.

Endpoints:
  GET  /feed                              — Most recent activity (all users)
  GET  /feed/{activity_id}/reactions      — Reaction counts
  POST /feed/{activity_id}/reactions      — Toggle my reaction
  GET  /feed/{activity_id}/comments       — Comments, oldest first
  POST /feed/{activity_id}/comments       — Add a comment
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from theater_tracker.api.errors import to_http
from theater_tracker.core.config import settings
from theater_tracker.db.models import User
from theater_tracker.db.session import get_db
from theater_tracker.deps.auth import get_current_user, get_optional_user
from theater_tracker.schemas.feed import (
    CommentResponse,
    CreateCommentRequest,
    FeedItemResponse,
    ReactionCounts,
    ReactionStateResponse,
    ReactRequest,
)
from theater_tracker.services.errors import TheaterError
from theater_tracker.services.feed_service import (
    add_comment,
    list_comments,
    list_recent_activity,
    react,
    reaction_counts,
)
from theater_tracker.services.spoilers import SpoilerRevealState

router = APIRouter()


@router.get("", response_model=list[FeedItemResponse])
def get_feed(
    limit: int = Query(settings.FEED_DEFAULT_LIMIT, ge=1, le=settings.FEED_MAX_LIMIT),
    reveal: list[UUID] = Query([], description="Entry ids whose spoilers to show"),
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> list[dict]:
    return list_recent_activity(
        db,
        viewer.id if viewer else None,
        limit=limit,
        reveal_state=SpoilerRevealState(reveal),
    )


@router.get("/{activity_id}/reactions", response_model=ReactionCounts)
def get_reactions(activity_id: UUID, db: Session = Depends(get_db)) -> dict:
    try:
        return reaction_counts(db, activity_id)
    except TheaterError as exc:
        raise to_http(exc) from exc


@router.post("/{activity_id}/reactions", response_model=ReactionStateResponse)
def toggle_reaction(
    activity_id: UUID,
    payload: ReactRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return react(db, activity_id, current_user.id, payload.reaction_type)
    except TheaterError as exc:
        raise to_http(exc) from exc


@router.get("/{activity_id}/comments", response_model=list[CommentResponse])
def get_comments(activity_id: UUID, db: Session = Depends(get_db)) -> list[dict]:
    try:
        return list_comments(db, activity_id)
    except TheaterError as exc:
        raise to_http(exc) from exc


@router.post(
    "/{activity_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
def post_comment(
    activity_id: UUID,
    payload: CreateCommentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return add_comment(db, activity_id, current_user.id, payload.comment_text)
    except TheaterError as exc:
        raise to_http(exc) from exc
