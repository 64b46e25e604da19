"""
Catalog business logic — submissions, admin approval, browse.
"""
import logging
import re
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from theater_tracker.db.models import ApprovalStatusEnum, Show, User
from theater_tracker.schemas.shows import ShowResponse
from theater_tracker.services.errors import (
    DuplicateError,
    InvalidTransitionError,
    NotFoundError,
    TransientStoreError,
    ValidationFailedError,
    is_unique_violation,
)
from theater_tracker.services.notification_service import (
    NotificationType,
    ShowNotification,
    send_show_notification,
)

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200


class ShowNotFoundError(NotFoundError):
    code = "SHOW_NOT_FOUND"


class DuplicateTitleError(DuplicateError):
    code = "DUPLICATE_TITLE"


class InvalidShowTransitionError(InvalidTransitionError):
    code = "SHOW_ALREADY_REVIEWED"


class InvalidShowPayloadError(ValidationFailedError):
    code = "INVALID_SHOW"


def normalize_title(title: str) -> str:
    """Trim and collapse whitespace. Case is preserved: uniqueness is case-sensitive."""
    return re.sub(r"\s+", " ", title.strip())


def _notify_best_effort(notification: ShowNotification) -> None:
    try:
        send_show_notification(notification)
    except Exception:
        logger.exception(
            "Notification %s for %r failed",
            notification.type.value,
            notification.show_title,
        )


def _first_admin_email(db: Session) -> str | None:
    admin = (
        db.query(User)
        .filter(User.is_admin.is_(True), User.is_active.is_(True))
        .order_by(User.created_at.asc())
        .first()
    )
    return admin.email if admin else None


def _get_show_or_raise(db: Session, show_id: UUID) -> Show:
    show = db.query(Show).filter(Show.id == show_id).first()
    if show is None:
        raise ShowNotFoundError(f"Show {show_id} not found")
    return show


def approved_show_or_raise(db: Session, show_id: UUID) -> Show:
    """Only approved shows can be logged or reviewed; anything else reads as missing."""
    show = _get_show_or_raise(db, show_id)
    if show.approval_status != ApprovalStatusEnum.APPROVED:
        raise ShowNotFoundError(f"Show {show_id} not found")
    return show


def submit_show(
    db: Session,
    submitter: User,
    title: str,
    photo_url: str,
    description: str | None = None,
) -> Show:
    """
    Create a pending show and tell an admin about it.

    Raises DuplicateTitleError when a show with exactly this title exists.
    The admin notification is best-effort and cannot fail the submission.
    """
    normalized = normalize_title(title)
    if not normalized:
        raise InvalidShowPayloadError("Title cannot be empty")
    if len(normalized) > TITLE_MAX_LENGTH:
        raise InvalidShowPayloadError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
    if not photo_url or not photo_url.strip():
        raise InvalidShowPayloadError("A photo URL is required")

    show = Show(
        title=normalized,
        photo_url=photo_url.strip(),
        description=(description or "").strip() or None,
        approval_status=ApprovalStatusEnum.PENDING,
        created_by=submitter.id,
        submitter_email=submitter.email,
    )
    db.add(show)

    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise DuplicateTitleError("A show with this title already exists") from exc
        raise TransientStoreError("Show submission failed") from exc

    db.commit()
    db.refresh(show)
    logger.info("Show %r submitted by %s", show.title, submitter.id)

    _notify_best_effort(
        ShowNotification(
            type=NotificationType.NEW_SHOW,
            show_title=show.title,
            recipient_email=_first_admin_email(db),
        )
    )
    return show


def _transition(db: Session, show_id: UUID, target: ApprovalStatusEnum) -> Show:
    show = _get_show_or_raise(db, show_id)
    if show.approval_status != ApprovalStatusEnum.PENDING:
        raise InvalidShowTransitionError(
            f"Show is already {ApprovalStatusEnum(show.approval_status).value}"
        )
    show.approval_status = target
    db.add(show)
    db.commit()
    db.refresh(show)
    logger.info("Show %r marked %s", show.title, target.value)
    return show


def approve_show(db: Session, show_id: UUID) -> Show:
    """Approve a pending show and notify its submitter (best-effort)."""
    show = _transition(db, show_id, ApprovalStatusEnum.APPROVED)
    _notify_best_effort(
        ShowNotification(
            type=NotificationType.SHOW_APPROVED,
            show_title=show.title,
            recipient_email=show.submitter_email,
        )
    )
    return show


def reject_show(db: Session, show_id: UUID) -> Show:
    """Reject a pending show. Rejected shows never appear in browse."""
    return _transition(db, show_id, ApprovalStatusEnum.REJECTED)


def list_approved_shows(db: Session, search_term: str | None = None) -> list[Show]:
    """Approved shows ordered by title, optionally filtered by case-insensitive substring."""
    query = db.query(Show).filter(Show.approval_status == ApprovalStatusEnum.APPROVED)
    term = (search_term or "").strip()
    if term:
        query = query.filter(Show.title.ilike(f"%{term}%"))
    return query.order_by(Show.title.asc()).all()


def list_pending_shows(db: Session) -> list[Show]:
    """Admin review queue, newest submissions first."""
    return (
        db.query(Show)
        .filter(Show.approval_status == ApprovalStatusEnum.PENDING)
        .order_by(Show.created_at.desc())
        .all()
    )


def get_show(db: Session, show_id: UUID, viewer: User | None = None) -> Show:
    """
    Fetch one show.

    Unapproved shows are only visible to admins and to their submitter;
    everyone else gets ShowNotFoundError.
    """
    show = _get_show_or_raise(db, show_id)
    if show.approval_status == ApprovalStatusEnum.APPROVED:
        return show
    if viewer is not None and (viewer.is_admin or viewer.id == show.created_by):
        return show
    raise ShowNotFoundError(f"Show {show_id} not found")


def map_show_response(row: Show) -> ShowResponse:
    """Serialize an ORM show row to a typed API response model."""
    return ShowResponse(
        id=row.id,
        title=row.title,
        photo_url=row.photo_url,
        description=row.description,
        approval_status=ApprovalStatusEnum(row.approval_status).value,
        created_by=row.created_by,
        created_at=row.created_at,
    )
