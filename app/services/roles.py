from ..models.enums import UserRole
from ..models.user import User


def _role_of(principal: User) -> UserRole:
    # Rows loaded from SQLite may hand back the raw string
    return UserRole(principal.role)


def has_organizer_privileges(principal: User) -> bool:
    """ORGANIZER and ADMIN may administer leagues and any team."""
    role = _role_of(principal)
    if role is UserRole.ADMIN or role is UserRole.ORGANIZER:
        return True
    if role is UserRole.REGULAR:
        return False
    raise ValueError(f"Unhandled role {role!r}")


def has_admin_privileges(principal: User) -> bool:
    role = _role_of(principal)
    if role is UserRole.ADMIN:
        return True
    if role is UserRole.ORGANIZER or role is UserRole.REGULAR:
        return False
    raise ValueError(f"Unhandled role {role!r}")
