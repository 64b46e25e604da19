"""
Auth dependencies — shared across all protected endpoints.

Usage in any route:
    from theater_tracker.deps.auth import get_current_user
    from theater_tracker.db.models import User

    @router.post("/protected")
    def protected(user: User = Depends(get_current_user)):
        ...

The resolved User is passed explicitly into every service call; services
never look the session up themselves.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from theater_tracker.core.security import decode_access_token
from theater_tracker.db.models import User
from theater_tracker.db.session import get_db
from theater_tracker.services.auth_service import get_user_by_id

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def _auth_required(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": {"code": "AUTH_REQUIRED", "message": message}},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _resolve_user(token: str | None, db: Session) -> User | None:
    if not token:
        return None
    claims = decode_access_token(token)
    if claims is None:
        return None
    user = get_user_by_id(db, claims.user_id)
    if user is None or not user.is_active:
        return None
    return user


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Return the active User behind the bearer token.

    Raises 401 AUTH_REQUIRED on any failure (missing/invalid token, unknown
    or deactivated user).
    """
    if not token:
        raise _auth_required("Please sign in to continue")
    user = _resolve_user(token, db)
    if user is None:
        raise _auth_required("Invalid or expired session")
    return user


def get_optional_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User | None:
    """Like get_current_user, but anonymous readers get None instead of 401."""
    return _resolve_user(token, db)


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Raises 403 unless the authenticated user holds the admin capability."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": {"code": "ADMIN_REQUIRED", "message": "Admin access required"}},
        )
    return user
