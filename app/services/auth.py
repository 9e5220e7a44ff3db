import logging
import re
import secrets
from datetime import datetime, timedelta
from typing import Optional
import bcrypt
from sqlmodel import Session, select

from ..errors import Conflict, ValidationFailure
from ..models.enums import UserRole
from ..models.user import User
from ..models.session import Session as UserSession
from ..config import SESSION_EXPIRE_DAYS

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode('utf-8')[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password using bcrypt. Truncates to 72 bytes for bcrypt compatibility."""
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt())
    return hashed.decode('utf-8')


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(_password_bytes(password), hashed.encode('utf-8'))


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


def validate_password(password: str) -> None:
    """At least 8 characters with a letter and a digit."""
    if (
        len(password) < 8
        or not re.search(r'[A-Za-z]', password)
        or not re.search(r'\d', password)
    ):
        raise ValidationFailure(
            "Password must be at least 8 characters and contain a letter and a number"
        )


def validate_name(name: str) -> str:
    name = (name or "").strip()
    if not 2 <= len(name) <= 100:
        raise ValidationFailure("Name must be between 2 and 100 characters")
    return name


def create_session(db: Session, user_id: int) -> str:
    """Create a new session for a user and return the session token."""
    session_token = secrets.token_urlsafe(32)
    expires_at = datetime.utcnow() + timedelta(days=SESSION_EXPIRE_DAYS)

    user_session = UserSession(
        user_id=user_id,
        session_token=session_token,
        expires_at=expires_at
    )
    db.add(user_session)
    db.commit()

    return session_token


def get_session_user_id(db: Session, session_token: str) -> Optional[int]:
    """Return the user id behind a session token, or None if it is unknown or expired."""
    statement = select(UserSession).where(
        UserSession.session_token == session_token,
        UserSession.expires_at > datetime.utcnow()
    )
    user_session = db.exec(statement).first()
    return user_session.user_id if user_session else None


def delete_session(db: Session, session_token: str) -> None:
    """Delete a session (logout)."""
    statement = select(UserSession).where(UserSession.session_token == session_token)
    user_session = db.exec(statement).first()
    if user_session:
        db.delete(user_session)
        db.commit()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get a user by email."""
    statement = select(User).where(User.email == email.strip().lower())
    return db.exec(statement).first()


def create_user(
    db: Session,
    email: str,
    password: str,
    name: str,
    role: UserRole = UserRole.REGULAR
) -> User:
    """Create a new user. Signup always goes through here with the default role."""
    email = email.strip().lower()
    if not is_valid_email(email):
        raise ValidationFailure("Invalid email format")
    validate_password(password)
    name = validate_name(name)

    if get_user_by_email(db, email):
        raise Conflict("Email is already registered")

    user = User(
        email=email,
        password_hash=hash_password(password),
        name=name,
        role=role
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s signed up with role %s", user.id, user.role)
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user by email and password."""
    user = get_user_by_email(db, email)
    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user
