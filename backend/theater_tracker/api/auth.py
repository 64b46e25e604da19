"""
Auth API — /auth
─────────────────
Endpoints:
  POST /auth/signup   — Create account, return user profile (201)
  POST /auth/login    — Authenticate, return JWT
  GET  /auth/me       — Return current user profile (requires bearer token)
"""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from theater_tracker.api.errors import error_body, to_http
from theater_tracker.db.models import User
from theater_tracker.db.session import get_db
from theater_tracker.deps.auth import get_current_user
from theater_tracker.schemas.auth import SignupRequest, TokenResponse, UserResponse
from theater_tracker.services.auth_service import (
    authenticate_user,
    create_user,
    issue_access_token,
)
from theater_tracker.services.errors import TheaterError

router = APIRouter()


@router.post(
    "/signup",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
def signup(payload: SignupRequest, db: Session = Depends(get_db)) -> UserResponse:
    """
    Create a new user account.

    Returns 409 DUPLICATE_USER if the username or email already exists.
    """
    try:
        user = create_user(
            db,
            username=payload.username,
            email=payload.email,
            password=payload.password,
        )
    except TheaterError as exc:
        raise to_http(exc) from exc

    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
def login(
    form: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> TokenResponse:
    """
    Authenticate with username + password, return a JWT.

    Uses OAuth2 password form so the Swagger /docs Authorize button works
    out of the box.
    """
    user = authenticate_user(db, username=form.username, password=form.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_body("INVALID_CREDENTIALS", "Incorrect username or password"),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenResponse(access_token=issue_access_token(user))


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)
