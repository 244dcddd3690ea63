"""Create the tables and, on an empty database, the first admin account."""

import logging
import sys

from sqlalchemy.orm import Session

from resource_search.core.config import get_settings
from resource_search.db.session import SessionLocal, init_db
from resource_search.models.user import User, UserRole
from resource_search.services.auth import create_user

logger = logging.getLogger(__name__)


def ensure_admin(db: Session, username: str | None, password: str | None) -> User | None:
    """Return the created admin, or None when credentials are missing or users exist."""
    if not username or not password:
        logger.info("No bootstrap admin credentials configured")
        return None
    if db.query(User.id).first() is not None:
        logger.info("Users already exist, not creating %s", username)
        return None

    admin = create_user(db, username, password, role=UserRole.ADMIN, display_name="Administrator")
    logger.info("Created admin %s (id=%s)", admin.username, admin.id)
    return admin


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = get_settings()
    try:
        init_db()
        with SessionLocal() as db:
            ensure_admin(db, settings.bootstrap_admin_username, settings.bootstrap_admin_password)
    except Exception:
        logger.exception("Bootstrap failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
