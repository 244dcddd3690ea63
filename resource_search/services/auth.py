"""Identity for resource mutations: who the actor behind a bearer token is.

Passwords are bcrypt hashes; tokens are HS256 JWTs whose ``sub`` claim is the
username. Resolution always reloads the user, so role changes and
deactivation take effect on the next request rather than at token expiry.
"""

from datetime import UTC, datetime, timedelta

import bcrypt
import jwt
from sqlalchemy.orm import Session

from resource_search.core.config import get_settings
from resource_search.models.user import User, UserRole

settings = get_settings()


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def password_matches(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


# Checked against when the username is unknown so both failures cost one bcrypt round
_UNKNOWN_USER_HASH = hash_password("no-such-user")


def issue_token(user: User, expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.jwt_expire_minutes)
    claims = {"sub": user.username, "exp": datetime.now(UTC) + lifetime}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def token_subject(token: str) -> str | None:
    """Username carried by a valid, unexpired token; None for anything else."""
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        return None
    subject = claims.get("sub")
    return subject if isinstance(subject, str) and subject else None


def resolve_actor(db: Session, token: str) -> User | None:
    username = token_subject(token)
    if username is None:
        return None
    return db.query(User).filter(User.username == username).first()


def authenticate(db: Session, username: str, password: str) -> User | None:
    user = db.query(User).filter(User.username == username).first()
    if user is None:
        password_matches(password, _UNKNOWN_USER_HASH)
        return None
    return user if password_matches(password, user.password_hash) else None


def create_user(
    db: Session,
    username: str,
    password: str,
    role: UserRole | str = UserRole.MEMBER,
    display_name: str | None = None,
) -> User:
    user = User(
        username=username,
        display_name=display_name,
        password_hash=hash_password(password),
        role=UserRole(role).value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
