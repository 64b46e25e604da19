"""
Friendship business logic — request/accept/reject/remove and user search.

An edge moves none → pending → accepted; rejecting a pending edge or
removing an accepted one deletes it, which is the same as never having
had one.
"""
import logging
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from theater_tracker.db.models import Friendship, FriendshipStatusEnum, User
from theater_tracker.services.errors import (
    DuplicateError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    TransientStoreError,
    ValidationFailedError,
    is_unique_violation,
)

logger = logging.getLogger(__name__)

SEARCH_RESULT_CAP = 10


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"


class FriendshipNotFoundError(NotFoundError):
    code = "FRIENDSHIP_NOT_FOUND"


class SelfFriendshipError(ValidationFailedError):
    code = "SELF_FRIENDSHIP"


class DuplicateRequestError(DuplicateError):
    code = "DUPLICATE_REQUEST"


class NotAddresseeError(PermissionDeniedError):
    code = "NOT_ADDRESSEE"


class NotEdgeMemberError(PermissionDeniedError):
    code = "NOT_EDGE_MEMBER"


class InvalidFriendshipTransitionError(InvalidTransitionError):
    code = "INVALID_FRIENDSHIP_TRANSITION"


def _active_user_or_raise(db: Session, user_id: UUID) -> User:
    user = (
        db.query(User)
        .filter(User.id == user_id, User.is_active.is_(True))
        .first()
    )
    if user is None:
        raise UserNotFoundError(f"User {user_id} not found")
    return user


def _edge_or_raise(db: Session, edge_id: UUID) -> Friendship:
    edge = db.query(Friendship).filter(Friendship.id == edge_id).first()
    if edge is None:
        raise FriendshipNotFoundError(f"Friend request {edge_id} not found")
    return edge


def _edge_between(db: Session, a: UUID, b: UUID) -> Friendship | None:
    """Any edge joining *a* and *b*, whichever direction it was sent."""
    return (
        db.query(Friendship)
        .filter(
            or_(
                and_(Friendship.requester_id == a, Friendship.addressee_id == b),
                and_(Friendship.requester_id == b, Friendship.addressee_id == a),
            )
        )
        .first()
    )


def _status(edge: Friendship) -> FriendshipStatusEnum:
    return FriendshipStatusEnum(edge.status)


def _edge_dict(edge: Friendship, counterpart: User) -> dict:
    return {
        "id": edge.id,
        "requester_id": edge.requester_id,
        "addressee_id": edge.addressee_id,
        "status": _status(edge).value,
        "user_id": counterpart.id,
        "username": counterpart.username,
        "created_at": edge.created_at,
    }


def send_request(db: Session, from_user_id: UUID, to_user_id: UUID) -> dict:
    """Open a pending edge from → to."""
    if from_user_id == to_user_id:
        raise SelfFriendshipError("You cannot send a friend request to yourself")

    target = _active_user_or_raise(db, to_user_id)

    existing = _edge_between(db, from_user_id, to_user_id)
    if existing is not None:
        if _status(existing) == FriendshipStatusEnum.ACCEPTED:
            raise DuplicateRequestError("You are already friends")
        raise DuplicateRequestError("A friend request already exists between you")

    edge = Friendship(
        requester_id=from_user_id,
        addressee_id=to_user_id,
        status=FriendshipStatusEnum.PENDING,
    )
    db.add(edge)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise DuplicateRequestError("Friend request already sent") from exc
        raise TransientStoreError("Could not send friend request") from exc

    db.commit()
    db.refresh(edge)
    return _edge_dict(edge, target)


def accept_request(db: Session, edge_id: UUID, caller_id: UUID) -> dict:
    """pending → accepted. Only the addressee may accept."""
    edge = _edge_or_raise(db, edge_id)
    if edge.addressee_id != caller_id:
        raise NotAddresseeError("Only the recipient can accept this request")
    if _status(edge) != FriendshipStatusEnum.PENDING:
        raise InvalidFriendshipTransitionError("This request is not pending")

    requester = edge.requester
    edge.status = FriendshipStatusEnum.ACCEPTED
    db.add(edge)
    db.commit()
    db.refresh(edge)
    logger.info("Friendship %s accepted", edge.id)
    return _edge_dict(edge, requester)


def _delete_edge(
    db: Session,
    edge_id: UUID,
    caller_id: UUID,
    expected: FriendshipStatusEnum,
) -> bool:
    edge = _edge_or_raise(db, edge_id)
    if caller_id not in (edge.requester_id, edge.addressee_id):
        raise NotEdgeMemberError("You are not part of this friendship")
    if _status(edge) != expected:
        raise InvalidFriendshipTransitionError(
            f"Expected a {expected.value} friendship, found {_status(edge).value}"
        )
    db.delete(edge)
    db.commit()
    return True


def reject_request(db: Session, edge_id: UUID, caller_id: UUID) -> bool:
    """Delete a pending edge; from the requester's side this is a cancel."""
    return _delete_edge(db, edge_id, caller_id, FriendshipStatusEnum.PENDING)


def remove_friend(db: Session, edge_id: UUID, caller_id: UUID) -> bool:
    """Delete an accepted edge. Either friend may do this."""
    return _delete_edge(db, edge_id, caller_id, FriendshipStatusEnum.ACCEPTED)


def list_friends(db: Session, user_id: UUID) -> list[dict]:
    """Accepted edges in either direction, resolved to the other user."""
    edges = (
        db.query(Friendship)
        .filter(
            Friendship.status == FriendshipStatusEnum.ACCEPTED,
            or_(Friendship.requester_id == user_id, Friendship.addressee_id == user_id),
        )
        .all()
    )
    friends = []
    for edge in edges:
        counterpart = edge.addressee if edge.requester_id == user_id else edge.requester
        friends.append(_edge_dict(edge, counterpart))
    friends.sort(key=lambda f: f["username"].lower())
    return friends


def list_incoming_requests(db: Session, user_id: UUID) -> list[dict]:
    """Pending edges addressed to the user, newest first."""
    rows = (
        db.query(Friendship, User)
        .join(User, User.id == Friendship.requester_id)
        .filter(
            Friendship.addressee_id == user_id,
            Friendship.status == FriendshipStatusEnum.PENDING,
        )
        .order_by(Friendship.created_at.desc())
        .all()
    )
    return [_edge_dict(edge, requester) for edge, requester in rows]


def list_outgoing_requests(db: Session, user_id: UUID) -> list[dict]:
    """Pending edges the user sent, newest first."""
    rows = (
        db.query(Friendship, User)
        .join(User, User.id == Friendship.addressee_id)
        .filter(
            Friendship.requester_id == user_id,
            Friendship.status == FriendshipStatusEnum.PENDING,
        )
        .order_by(Friendship.created_at.desc())
        .all()
    )
    return [_edge_dict(edge, addressee) for edge, addressee in rows]


def _friendship_state(edge: Friendship | None, viewer_id: UUID) -> str:
    if edge is None:
        return "none"
    if _status(edge) == FriendshipStatusEnum.ACCEPTED:
        return "friends"
    return "request_sent" if edge.requester_id == viewer_id else "request_received"


def search_users(
    db: Session,
    query: str,
    exclude_user_id: UUID,
    limit: int = SEARCH_RESULT_CAP,
) -> list[dict]:
    """Case-insensitive username substring search, never returning the caller."""
    q = query.strip()
    if not q:
        return []

    users = (
        db.query(User)
        .filter(
            User.id != exclude_user_id,
            User.is_active.is_(True),
            User.username.ilike(f"%{q}%"),
        )
        .order_by(User.username.asc())
        .limit(min(limit, SEARCH_RESULT_CAP))
        .all()
    )
    if not users:
        return []

    ids = [u.id for u in users]
    edges = (
        db.query(Friendship)
        .filter(
            or_(
                and_(Friendship.requester_id == exclude_user_id, Friendship.addressee_id.in_(ids)),
                and_(Friendship.addressee_id == exclude_user_id, Friendship.requester_id.in_(ids)),
            )
        )
        .all()
    )
    by_counterpart = {
        (e.addressee_id if e.requester_id == exclude_user_id else e.requester_id): e
        for e in edges
    }

    return [
        {
            "id": row.id,
            "username": row.username,
            "friendship_status": _friendship_state(by_counterpart.get(row.id), exclude_user_id),
            "friendship_id": by_counterpart[row.id].id if row.id in by_counterpart else None,
        }
        for row in users
    ]
