"""
Database initialization script.

Creates every table and, when BOOTSTRAP_ADMIN_USERNAME and
BOOTSTRAP_ADMIN_PASSWORD are set, the first superadmin account.
"""
import logging
from gatepass.core.config import settings
from gatepass.core.logging import setup_logging
from gatepass.core.permissions import Role
from gatepass.core.security import get_password_hash
from gatepass.db.session import SessionLocal, init_db
from gatepass.models.user import User

logger = logging.getLogger(__name__)


def bootstrap_admin(db) -> User:
    """Create the configured superadmin unless the username already exists."""
    username = settings.BOOTSTRAP_ADMIN_USERNAME
    user = db.query(User).filter(User.username == username).first()
    if user:
        logger.info(f"User '{username}' already exists, leaving it untouched")
        return user

    user = User(
        username=username,
        email=settings.BOOTSTRAP_ADMIN_EMAIL,
        full_name="Administrator",
        hashed_password=get_password_hash(settings.BOOTSTRAP_ADMIN_PASSWORD),
        role=Role.SUPERADMIN,
        is_active=True
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Superadmin '{username}' created with id {user.id}")
    return user


if __name__ == "__main__":
    setup_logging()
    print("Initializing database...")
    init_db()
    if settings.BOOTSTRAP_ADMIN_USERNAME and settings.BOOTSTRAP_ADMIN_PASSWORD:
        db = SessionLocal()
        try:
            bootstrap_admin(db)
        finally:
            db.close()
    print("Database initialized successfully!")
