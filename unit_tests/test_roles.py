import pytest

from app.models import User, UserRole
from app.services.roles import has_admin_privileges, has_organizer_privileges


def make_user(role) -> User:
    return User(id=1, email="u@example.com", name="User", password_hash="x", role=role)


@pytest.mark.parametrize("role, expected", [
    (UserRole.REGULAR, False),
    (UserRole.ORGANIZER, True),
    (UserRole.ADMIN, True),
])
def test_organizer_privileges(role, expected):
    assert has_organizer_privileges(make_user(role)) is expected


@pytest.mark.parametrize("role, expected", [
    (UserRole.REGULAR, False),
    (UserRole.ORGANIZER, False),
    (UserRole.ADMIN, True),
])
def test_admin_privileges(role, expected):
    assert has_admin_privileges(make_user(role)) is expected


def test_role_stored_as_plain_string():
    # Rows read back from the database may carry the raw value
    assert has_organizer_privileges(make_user("ORGANIZER")) is True
    assert has_admin_privileges(make_user("REGULAR")) is False


def test_unknown_role_is_rejected():
    with pytest.raises(ValueError):
        has_organizer_privileges(make_user("SUPERUSER"))
