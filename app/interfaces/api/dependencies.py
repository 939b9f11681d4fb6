"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.domain.entities import User
from app.infrastructure.database import get_db
from app.infrastructure.notifications import (
    NotificationBroadcaster,
    NotificationConnectionManager,
    notification_manager,
)
from app.infrastructure.repositories import UserRepository
from app.infrastructure.security import decode_access_token, password_signature

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token", auto_error=False)


def _credentials_exception(detail: str = "Invalid credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_current_user(token: str, db: Session) -> User:
    """Resolve the authenticated user for the provided token."""

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise _credentials_exception() from exc

    email: str | None = payload.get("sub")
    password_signature_claim = payload.get("pwd_sig")
    if email is None or not isinstance(password_signature_claim, str):
        raise _credentials_exception()

    user = UserRepository(db).get_by_email(email)
    if user is None:
        raise _credentials_exception("User not found")

    if password_signature_claim != password_signature(user.password, user.is_active):
        raise _credentials_exception()

    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Return the authenticated user from the provided token."""

    return resolve_current_user(token, db)


def _ensure_active(user: User) -> User:
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user",
        )
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the authenticated user is active."""

    return _ensure_active(current_user)


def get_stream_user(
    header_token: str | None = Depends(optional_oauth2_scheme),
    token: str | None = Query(default=None, description="Access token for EventSource clients"),
    db: Session = Depends(get_db),
) -> User:
    """Authenticate a streaming request.

    Browsers' ``EventSource`` cannot send an ``Authorization`` header, so the
    token is also accepted as the ``token`` query parameter.
    """

    raw_token = header_token or token
    if not raw_token:
        raise _credentials_exception("Not authenticated")
    return _ensure_active(resolve_current_user(raw_token, db))


def require_admin(current_user: User = Depends(get_current_active_user)) -> User:
    """Ensure the authenticated user has administrator privileges."""

    if not current_user.is_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized",
        )
    return current_user


def get_notification_manager(request: Request) -> NotificationConnectionManager:
    """Return the connection registry owned by the running application."""

    return getattr(request.app.state, "notification_manager", notification_manager)


def get_notification_broadcaster(
    manager: NotificationConnectionManager = Depends(get_notification_manager),
) -> NotificationBroadcaster:
    return NotificationBroadcaster(manager)
