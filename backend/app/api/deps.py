"""FastAPI dependencies: DB session, current user from JWT, role checks.

SECURITY: Supports JWT from:
1. Authorization header (for API clients)
2. httpOnly cookie (for web frontend)

Workflows receive the acting User explicitly; nothing reads the user from
ambient request state.
"""
from typing import Callable, Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import BusinessError
from app.core.permissions import Operation, is_allowed
from app.core.security import decode_access_token
from app.db.session import SessionLocal
from app.models.user import User

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> int:
    """
    Extract user ID from JWT token.
    SECURITY: Checks both Authorization header and httpOnly cookie.
    Header takes precedence over cookie.
    """
    token = None

    # Try from Authorization header first (for API clients)
    if credentials:
        token = credentials.credentials
    # Fall back to httpOnly cookie (for web frontend)
    elif settings.AUTH_COOKIE_NAME in request.cookies:
        token = request.cookies[settings.AUTH_COOKIE_NAME]

    if not token:
        raise BusinessError.unauthorized("no token")

    sub = decode_access_token(token)
    if not sub:
        raise BusinessError.unauthorized("invalid or expired token")

    try:
        return int(sub)
    except ValueError:
        raise BusinessError.unauthorized(f"non-numeric subject {sub!r}")


def get_current_user(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> User:
    """Load current user from DB. Deactivated staff are treated as unauthenticated."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise BusinessError.unauthorized(f"user {user_id} missing or inactive")
    return user


def require(operation: Operation) -> Callable[..., User]:
    """
    Dependency factory: the current user, provided their role allows `operation`.

    Usage:
        @router.post("/prescriptions")
        def create(user: User = Depends(require(Operation.WRITE_PRESCRIPTIONS))): ...
    """

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if not is_allowed(current_user.role, operation):
            raise BusinessError.forbidden(
                f"user {current_user.id} ({current_user.role.value}) attempted {operation.value}"
            )
        return current_user

    return checker
