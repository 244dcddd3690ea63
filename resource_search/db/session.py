from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from resource_search.core.config import get_settings

settings = get_settings()

engine = create_engine(settings.database_url_sync, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create all tables that do not exist yet."""
    # Import models so every table is registered on the metadata
    import resource_search.models  # noqa: F401
    from resource_search.models.base import Base

    Base.metadata.create_all(bind=engine)
