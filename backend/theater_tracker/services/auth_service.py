"""
Auth business logic — signup, login, token issuance.

All DB writes go through this layer (not directly in routes).
"""
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from theater_tracker.core.security import create_access_token, hash_password, verify_password
from theater_tracker.db.models import User
from theater_tracker.services.errors import DuplicateError, TransientStoreError, is_unique_violation


# ── Custom exceptions ────────────────────────────────────────────────────────


class DuplicateUserError(DuplicateError):
    """Raised when signup conflicts with an existing username or email."""

    code = "DUPLICATE_USER"

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"A user with that {field} already exists")


# ── Service functions ────────────────────────────────────────────────────────


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    is_admin: bool = False,
) -> User:
    """
    Register a new user.

    - Normalises username and email (lowercase strip).
    - Hashes the password with bcrypt.
    - Raises DuplicateUserError on unique-constraint violation.
    """
    normalised_username = username.strip().lower()
    normalised_email = email.strip().lower()

    user = User(
        username=normalised_username,
        email=normalised_email,
        password_hash=hash_password(password),
        is_admin=is_admin,
    )
    db.add(user)

    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        if not is_unique_violation(exc):
            raise TransientStoreError("Signup failed") from exc
        error_str = str(exc.orig).lower()
        if "username" in error_str:
            raise DuplicateUserError("username") from exc
        if "email" in error_str:
            raise DuplicateUserError("email") from exc
        raise DuplicateUserError("username or email") from exc

    db.commit()
    db.refresh(user)
    return user


def authenticate_user(db: Session, username: str, password: str) -> User | None:
    """Verify credentials and return the active User, or None on failure."""
    user = (
        db.query(User)
        .filter(User.username == username.strip().lower())
        .first()
    )
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def issue_access_token(user: User) -> str:
    """Signed session token carrying the user's id and email."""
    return create_access_token(user.id, email=user.email)


def get_user_by_id(db: Session, user_id: UUID) -> User | None:
    return db.query(User).filter(User.id == user_id).first()
