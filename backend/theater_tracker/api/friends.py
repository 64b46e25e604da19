"""
Friends API — /friends
──────────────────────
Endpoints:
  GET    /friends                              — My friends
  DELETE /friends/{friendship_id}              — Remove a friend
  GET    /friends/search                       — Search users by username
  POST   /friends/requests                     — Send a friend request
  GET    /friends/requests/incoming            — Requests sent to me
  GET    /friends/requests/outgoing            — Requests I sent
  POST   /friends/requests/{friendship_id}/accept — Accept (recipient only)
  DELETE /friends/requests/{friendship_id}     — Reject, or cancel my own request
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from theater_tracker.api.errors import to_http
from theater_tracker.db.models import User
from theater_tracker.db.session import get_db
from theater_tracker.deps.auth import get_current_user
from theater_tracker.schemas.friends import (
    FriendshipResponse,
    SendFriendRequest,
    UserSearchResult,
)
from theater_tracker.services.errors import TheaterError
from theater_tracker.services.friendship_service import (
    accept_request,
    list_friends,
    list_incoming_requests,
    list_outgoing_requests,
    reject_request,
    remove_friend,
    search_users,
    send_request,
)

router = APIRouter()


@router.get("", response_model=list[FriendshipResponse])
def get_friends(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[dict]:
    return list_friends(db, current_user.id)


@router.get("/search", response_model=list[UserSearchResult])
def search_users_endpoint(
    q: str = Query(..., min_length=1, description="Username search query"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[dict]:
    return search_users(db, q, exclude_user_id=current_user.id)


@router.post(
    "/requests",
    response_model=FriendshipResponse,
    status_code=status.HTTP_201_CREATED,
)
def send_request_endpoint(
    payload: SendFriendRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return send_request(db, current_user.id, payload.user_id)
    except TheaterError as exc:
        raise to_http(exc) from exc


@router.get("/requests/incoming", response_model=list[FriendshipResponse])
def incoming_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[dict]:
    return list_incoming_requests(db, current_user.id)


@router.get("/requests/outgoing", response_model=list[FriendshipResponse])
def outgoing_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[dict]:
    return list_outgoing_requests(db, current_user.id)


@router.post("/requests/{friendship_id}/accept", response_model=FriendshipResponse)
def accept_request_endpoint(
    friendship_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return accept_request(db, friendship_id, current_user.id)
    except TheaterError as exc:
        raise to_http(exc) from exc


@router.delete("/requests/{friendship_id}", status_code=status.HTTP_204_NO_CONTENT)
def reject_request_endpoint(
    friendship_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    try:
        reject_request(db, friendship_id, current_user.id)
    except TheaterError as exc:
        raise to_http(exc) from exc


@router.delete("/{friendship_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_friend_endpoint(
    friendship_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    try:
        remove_friend(db, friendship_id, current_user.id)
    except TheaterError as exc:
        raise to_http(exc) from exc
