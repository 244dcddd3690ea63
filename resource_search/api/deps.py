from collections.abc import Generator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from resource_search.core.config import get_settings
from resource_search.db.session import SessionLocal
from resource_search.models.user import User, UserRole
from resource_search.services.auth import resolve_actor
from resource_search.services.resource_repository import (
    ResourceRepository,
    SqlResourceRepository,
)
from resource_search.services.result_cache import ResultCache
from resource_search.services.search import SearchService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    user = resolve_actor(db, token)
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return user


def get_optional_user(
    db: Session = Depends(get_db), token: str | None = Depends(optional_oauth2_scheme)
) -> User | None:
    """Resolve the caller when a valid bearer token is sent; anonymous otherwise."""
    if not token:
        return None
    user = resolve_actor(db, token)
    if user is None or not user.is_active:
        return None
    return user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """Only allow admin users."""
    if current_user.role != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def get_result_cache(request: Request) -> ResultCache:
    """The process-wide result cache created by the application factory."""
    return request.app.state.result_cache


def get_resource_repository(db: Session = Depends(get_db)) -> ResourceRepository:
    return SqlResourceRepository(db)


def get_search_service(
    repo: ResourceRepository = Depends(get_resource_repository),
    cache: ResultCache = Depends(get_result_cache),
) -> SearchService:
    settings = get_settings()
    return SearchService(
        repo,
        cache,
        relevance_threshold=settings.search_relevance_threshold,
        max_limit=settings.search_max_limit,
    )
