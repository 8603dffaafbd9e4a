"""Create all tables. Run on app startup.

SECURITY: The bootstrap administrator gets a random password (not hardcoded).
It is logged once and must be changed after first login.
"""
import logging
import secrets

from app.core.config import settings
from app.core.permissions import Role
from app.core.security import get_password_hash
from app.db.base import Base
from app.db.session import engine, SessionLocal
from app import models  # noqa: F401 - register models
from app.models.user import User

logger = logging.getLogger(__name__)


def init_db(bind=None, session_factory=None) -> None:
    Base.metadata.create_all(bind=bind or engine)

    db = (session_factory or SessionLocal)()
    try:
        if db.query(User).count() == 0:
            default_password = secrets.token_urlsafe(16)
            admin = User(
                email=settings.BOOTSTRAP_ADMIN_EMAIL,
                hashed_password=get_password_hash(default_password),
                first_name="System",
                last_name="Administrator",
                role=Role.ADMINISTRATOR,
            )
            db.add(admin)
            db.commit()
            logger.warning(
                f"Bootstrap administrator created: {settings.BOOTSTRAP_ADMIN_EMAIL} / {default_password} "
                "- change this password immediately after first login"
            )
    finally:
        db.close()
