import logging
from datetime import datetime
from sqlmodel import Session, select

from ..errors import Conflict, Forbidden, NotFound, ValidationFailure, require_id
from ..models.enums import UserRole
from ..models.session import Session as UserSession
from ..models.team import TeamMembership
from ..models.user import User
from .auth import get_user_by_email, is_valid_email, validate_name
from .roles import has_admin_privileges

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, require_id(user_id, "user id"))
    if not user:
        raise NotFound("User")
    return user


def list_users(db: Session) -> list[User]:
    return db.exec(select(User).order_by(User.created_at)).all()


def update_profile(db: Session, user_id: int, changes: dict) -> User:
    user = get_user(db, user_id)

    if changes.get("email") is not None:
        email = changes["email"].strip().lower()
        if not is_valid_email(email):
            raise ValidationFailure("Invalid email format")
        existing = get_user_by_email(db, email)
        if existing and existing.id != user.id:
            raise Conflict("Email is already registered")
        user.email = email
    if changes.get("name") is not None:
        user.name = validate_name(changes["name"])

    user.updated_at = datetime.utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_role(db: Session, actor: User, user_id: int, role: UserRole) -> User:
    """Change a user's role. The caller must already hold organizer privileges."""
    role = UserRole(role)
    if role is UserRole.ADMIN and not has_admin_privileges(actor):
        raise Forbidden("Administrator privileges required")

    user = get_user(db, user_id)
    if user.id == actor.id and role is UserRole.REGULAR:
        raise ValidationFailure("Cannot demote yourself to REGULAR role")

    previous = user.role
    user.role = role
    user.updated_at = datetime.utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s role %s -> %s by user %s", user.id, previous, role.value, actor.id)
    return user


def delete_user(db: Session, actor: User, user_id: int) -> None:
    """Delete an account. The caller must already hold admin privileges."""
    if user_id == actor.id:
        raise ValidationFailure("Cannot delete your own account")
    user = get_user(db, user_id)

    membership = db.exec(
        select(TeamMembership).where(TeamMembership.user_id == user.id)
    ).first()
    if membership:
        raise Conflict("User still belongs to a team")

    sessions = db.exec(select(UserSession).where(UserSession.user_id == user.id)).all()
    for user_session in sessions:
        db.delete(user_session)
    db.delete(user)
    db.commit()
    logger.info("User %s deleted by user %s", user_id, actor.id)
