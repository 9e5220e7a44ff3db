from app.models import UserRole
from app.services.ownership import (
    can_approve_or_reject_membership,
    can_delete_team,
    can_modify_team,
)


def test_captain_can_modify_but_not_delete(store):
    captain = store.add_user()
    team = store.add_team(captain)

    assert can_modify_team(captain, team) is True
    assert can_approve_or_reject_membership(captain, team) is True
    assert can_delete_team(captain, team) is False


def test_other_regular_user_has_no_rights(store):
    team = store.add_team(store.add_user())
    outsider = store.add_user()

    assert can_modify_team(outsider, team) is False
    assert can_approve_or_reject_membership(outsider, team) is False
    assert can_delete_team(outsider, team) is False


def test_organizer_and_admin_have_every_right(store):
    team = store.add_team(store.add_user())
    for role in (UserRole.ORGANIZER, UserRole.ADMIN):
        actor = store.add_user(role)
        assert can_modify_team(actor, team) is True
        assert can_approve_or_reject_membership(actor, team) is True
        assert can_delete_team(actor, team) is True


def test_organizer_captain_may_delete(store):
    captain = store.add_user(UserRole.ORGANIZER)
    team = store.add_team(captain)

    assert can_delete_team(captain, team) is True
