"""
Catalog API — /shows
────────────────────
Endpoints:
  GET  /shows                    — Browse approved shows (optional ?q= title search)
  POST /shows                    — Submit a show for approval
  GET  /shows/pending            — Admin review queue
  GET  /shows/{show_id}          — Show detail
  POST /shows/{show_id}/approve  — Admin: approve a pending show
  POST /shows/{show_id}/reject   — Admin: reject a pending show
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from theater_tracker.api.errors import to_http
from theater_tracker.db.models import User
from theater_tracker.db.session import get_db
from theater_tracker.deps.auth import get_current_user, get_optional_user, require_admin
from theater_tracker.schemas.shows import ShowResponse, SubmitShowRequest
from theater_tracker.services.errors import TheaterError
from theater_tracker.services.show_service import (
    approve_show,
    get_show,
    list_approved_shows,
    list_pending_shows,
    map_show_response,
    reject_show,
    submit_show,
)

router = APIRouter()


@router.get("", response_model=list[ShowResponse])
def browse_shows(
    q: str | None = Query(None, max_length=200, description="Title search"),
    db: Session = Depends(get_db),
) -> list[ShowResponse]:
    return [map_show_response(row) for row in list_approved_shows(db, q)]


@router.post("", response_model=ShowResponse, status_code=status.HTTP_201_CREATED)
def submit_show_endpoint(
    payload: SubmitShowRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ShowResponse:
    """
    Submit a show. It stays pending until an admin approves it.

    Returns 409 DUPLICATE_TITLE if a show with exactly this title exists.
    """
    try:
        row = submit_show(
            db,
            current_user,
            title=payload.title,
            photo_url=payload.photo_url,
            description=payload.description,
        )
    except TheaterError as exc:
        raise to_http(exc) from exc
    return map_show_response(row)


@router.get("/pending", response_model=list[ShowResponse])
def pending_shows(
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[ShowResponse]:
    return [map_show_response(row) for row in list_pending_shows(db)]


@router.get("/{show_id}", response_model=ShowResponse)
def get_show_endpoint(
    show_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> ShowResponse:
    try:
        return map_show_response(get_show(db, show_id, viewer))
    except TheaterError as exc:
        raise to_http(exc) from exc


@router.post("/{show_id}/approve", response_model=ShowResponse)
def approve_show_endpoint(
    show_id: UUID,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ShowResponse:
    try:
        return map_show_response(approve_show(db, show_id))
    except TheaterError as exc:
        raise to_http(exc) from exc


@router.post("/{show_id}/reject", response_model=ShowResponse)
def reject_show_endpoint(
    show_id: UUID,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ShowResponse:
    try:
        return map_show_response(reject_show(db, show_id))
    except TheaterError as exc:
        raise to_http(exc) from exc
