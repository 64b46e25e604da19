"""
Diary API — /diary
──────────────────
The signed-in user's ledger of seen and want-to-see shows.

Endpoints:
  POST   /diary/seen           — Log a show as seen (diary entry)
  POST   /diary/want-to-see    — Add a show to want-to-see
  GET    /diary                — Seen entries, newest first (optional ?on=YYYY-MM-DD)
  GET    /diary/my-shows       — Seen + want-to-see lists
  GET    /diary/{entry_id}     — One of my entries
  PATCH  /diary/{entry_id}     — Edit rating / review / notes / spoiler flag
  DELETE /diary/{entry_id}     — Remove an entry
"""
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from theater_tracker.api.errors import to_http
from theater_tracker.db.models import User
from theater_tracker.db.session import get_db
from theater_tracker.deps.auth import get_current_user
from theater_tracker.schemas.diary import (
    DiaryEntryResponse,
    LoggedEntryResponse,
    MarkSeenRequest,
    MarkWantToSeeRequest,
    MyShowsResponse,
    UpdateDiaryEntryRequest,
)
from theater_tracker.services.diary_service import (
    delete_diary_entry,
    get_entry,
    list_diary,
    list_my_shows,
    mark_seen,
    mark_want_to_see,
    update_diary_entry,
)
from theater_tracker.services.errors import TheaterError

router = APIRouter()


def _logged(db: Session, user_id: UUID, entry_id: UUID, activity) -> dict:
    return {
        "entry": get_entry(db, user_id, entry_id),
        "activity_id": activity.id,
        "activity_type": activity.activity_type.value,
    }


@router.post("/seen", response_model=LoggedEntryResponse, status_code=status.HTTP_201_CREATED)
def mark_seen_endpoint(
    payload: MarkSeenRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """
    Log a show as seen. Returns 409 DUPLICATE_ENTRY when the show is
    already on either of the user's lists.
    """
    try:
        entry, activity = mark_seen(
            db,
            current_user.id,
            payload.show_id,
            date_seen=payload.date_seen,
            city=payload.city,
            rating=payload.rating,
            review=payload.review,
            private_notes=payload.private_notes,
            is_anonymous=payload.is_anonymous,
            contains_spoilers=payload.contains_spoilers,
        )
        return _logged(db, current_user.id, entry.id, activity)
    except TheaterError as exc:
        raise to_http(exc) from exc


@router.post("/want-to-see", response_model=LoggedEntryResponse, status_code=status.HTTP_201_CREATED)
def mark_want_to_see_endpoint(
    payload: MarkWantToSeeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        entry, activity = mark_want_to_see(db, current_user.id, payload.show_id)
        return _logged(db, current_user.id, entry.id, activity)
    except TheaterError as exc:
        raise to_http(exc) from exc


@router.get("", response_model=list[DiaryEntryResponse])
def list_diary_endpoint(
    on: date | None = Query(None, description="Only entries seen on this date"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[dict]:
    return list_diary(db, current_user.id, date_filter=on)


@router.get("/my-shows", response_model=MyShowsResponse)
def my_shows_endpoint(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return list_my_shows(db, current_user.id)


@router.get("/{entry_id}", response_model=DiaryEntryResponse)
def get_entry_endpoint(
    entry_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return get_entry(db, current_user.id, entry_id)
    except TheaterError as exc:
        raise to_http(exc) from exc


@router.patch("/{entry_id}", response_model=DiaryEntryResponse)
def update_entry_endpoint(
    entry_id: UUID,
    payload: UpdateDiaryEntryRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        update_diary_entry(
            db,
            current_user.id,
            entry_id,
            rating=payload.rating,
            review=payload.review,
            private_notes=payload.private_notes,
            contains_spoilers=payload.contains_spoilers,
        )
        return get_entry(db, current_user.id, entry_id)
    except TheaterError as exc:
        raise to_http(exc) from exc


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry_endpoint(
    entry_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    try:
        delete_diary_entry(db, current_user.id, entry_id)
    except TheaterError as exc:
        raise to_http(exc) from exc
