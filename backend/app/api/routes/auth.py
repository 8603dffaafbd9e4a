"""Auth: staff login/logout and administrator-managed accounts.

SECURITY FEATURES:
- Password hashing with bcrypt
- Password strength validation (UserCreate)
- httpOnly, Secure, SameSite cookies
- Token carries the role claim; every request re-reads the role from the DB
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, require
from app.core.audit import AuditLog, get_audit_log
from app.core.config import settings
from app.core.exceptions import BusinessError
from app.core.permissions import Operation
from app.core.security import verify_password, get_password_hash, create_access_token
from app.models.user import User
from app.schemas.user import UserCreate, UserLogin, UserResponse, Token

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.MANAGE_USERS)),
    audit: AuditLog = Depends(get_audit_log),
):
    """Administrator creates a staff account with a role."""
    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=data.email,
        hashed_password=get_password_hash(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        role=data.role,
        phone_number=data.phone_number,
        pharmacy_branch=data.pharmacy_branch,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} ({user.role.value}) created by administrator {current_user.id}")
    audit.record(current_user.id, "CREATE", "user", user.id, {"email": user.email, "role": user.role.value})
    return user


@router.get("/users", response_model=list[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.MANAGE_USERS)),
):
    return db.query(User).order_by(User.id).all()


@router.post("/login", response_model=Token)
def login(data: UserLogin, response: Response, db: Session = Depends(get_db)):
    """
    Login and set token in httpOnly cookie (also returned for API clients).

    SECURITY: Generic error message to prevent user enumeration.
    """
    user = db.query(User).filter(User.email == data.email).first()
    if not user or not user.is_active or not verify_password(data.password, user.hashed_password):
        raise BusinessError.unauthorized(f"failed login for {data.email}")

    token = create_access_token(subject=str(user.id), role=user.role.value)

    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,  # seconds
        secure=settings.SECURE_COOKIES,  # HTTPS only in production
        httponly=True,  # Prevent JavaScript access (XSS protection)
        samesite=settings.SAME_SITE_COOKIE,  # CSRF protection (strict)
    )
    logger.info(f"User {user.id} logged in")
    return Token(access_token=token, role=user.role)


@router.post("/logout")
def logout(response: Response, current_user: User = Depends(get_current_user)):
    """Logout by clearing httpOnly cookie."""
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user."""
    return current_user
