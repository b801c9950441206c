"""
Administrator accounts.

There is no public admin signup: the first administrator comes from the
BOOTSTRAP_ADMIN_* settings and is created on startup if missing.
"""
from sqlalchemy.orm import Session
import logging

from ..core.config import settings
from ..core.security import get_password_hash
from ..models.admin import Admin
from .identity_service import exists_by_email

logger = logging.getLogger(__name__)

def create_admin(db: Session, username: str, email: str, password: str) -> Admin:
    admin = Admin(
        username=username,
        email=email,
        password_hash=get_password_hash(password)
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin

def create_bootstrap_admin(db: Session) -> bool:
    """Create the configured admin if it does not exist yet."""
    if not settings.BOOTSTRAP_ADMIN_EMAIL or not settings.BOOTSTRAP_ADMIN_PASSWORD:
        logger.warning("Bootstrap admin credentials not configured; skipping")
        return False

    if exists_by_email(db, Admin, settings.BOOTSTRAP_ADMIN_EMAIL):
        return False

    admin = create_admin(
        db,
        username=settings.BOOTSTRAP_ADMIN_USERNAME,
        email=settings.BOOTSTRAP_ADMIN_EMAIL,
        password=settings.BOOTSTRAP_ADMIN_PASSWORD,
    )
    logger.info(f"Bootstrap admin {admin.id} created")
    return True
