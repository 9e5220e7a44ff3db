import pytest

from app.errors import Forbidden, NotFound, Unauthorized, ValidationFailure
from app.models import UserRole
from app.services.policy import OwnerIdSources, resolve_owner_id


def test_missing_actor_is_unauthorized(policy):
    decision = policy.require_organizer(None)

    assert decision.allowed is False
    assert isinstance(decision.error, Unauthorized)
    with pytest.raises(Unauthorized):
        decision.enforce()


def test_unknown_actor_is_unauthorized(policy):
    decision = policy.require_authenticated(999)

    assert isinstance(decision.error, Unauthorized)


def test_malformed_actor_id_is_a_validation_failure(policy):
    decision = policy.require_authenticated("abc")

    assert isinstance(decision.error, ValidationFailure)


def test_require_organizer(store, policy):
    regular = store.add_user()
    organizer = store.add_user(UserRole.ORGANIZER)

    denied = policy.require_organizer(regular.id)
    assert denied.allowed is False
    assert isinstance(denied.error, Forbidden)
    assert denied.reason == "Organizer privileges required"

    allowed = policy.require_organizer(organizer.id)
    assert allowed.allowed is True
    assert allowed.principal is organizer


def test_require_admin(store, policy):
    organizer = store.add_user(UserRole.ORGANIZER)
    admin = store.add_user(UserRole.ADMIN)

    assert policy.require_admin(organizer.id).reason == "Administrator privileges required"
    assert policy.require_admin(admin.id).allowed is True


def test_require_role(store, policy):
    organizer = store.add_user(UserRole.ORGANIZER)
    admin = store.add_user(UserRole.ADMIN)

    decision = policy.require_role(admin.id, UserRole.ORGANIZER)
    assert decision.allowed is False
    assert decision.reason == "Access denied. Required role: ORGANIZER"
    assert policy.require_role(organizer.id, UserRole.ORGANIZER, UserRole.ADMIN).allowed is True


def test_organizer_skips_team_lookup(store, policy):
    organizer = store.add_user(UserRole.ORGANIZER)
    team = store.add_team(store.add_user())

    decision = policy.require_captain_or_organizer(organizer.id, team.id)

    assert decision.allowed is True
    assert decision.team is None
    assert store.team_lookups == 0


def test_organizer_allowed_even_for_missing_team(store, policy):
    admin = store.add_user(UserRole.ADMIN)

    assert policy.require_membership_manager(admin.id, 12345).allowed is True
    assert store.team_lookups == 0


def test_captain_allowed_and_team_returned(store, policy):
    captain = store.add_user()
    team = store.add_team(captain)

    decision = policy.require_captain_or_organizer(captain.id, team.id)

    assert decision.allowed is True
    assert decision.team is team
    assert store.team_lookups == 1


def test_non_captain_forbidden(store, policy):
    team = store.add_team(store.add_user())
    outsider = store.add_user()

    decision = policy.require_membership_manager(outsider.id, team.id)

    assert isinstance(decision.error, Forbidden)
    assert decision.reason == "Must be team captain or organizer to perform this action"


def test_missing_team_not_found_for_regular_user(store, policy):
    regular = store.add_user()

    decision = policy.require_captain_or_organizer(regular.id, 12345)

    assert isinstance(decision.error, NotFound)
    assert decision.reason == "Team not found"


def test_captain_cannot_pass_deletion_guard(store, policy):
    captain = store.add_user()
    team = store.add_team(captain)

    decision = policy.require_team_deletion(captain.id, team.id)

    assert isinstance(decision.error, Forbidden)
    assert decision.reason == "Organizer privileges required"


def test_owner_id_resolution_order():
    assert resolve_owner_id(OwnerIdSources(path_user_id="3", body_user_id=4, path_id="5")) == 3
    assert resolve_owner_id(OwnerIdSources(body_user_id=4, path_id="5")) == 4
    assert resolve_owner_id(OwnerIdSources(path_id="5")) == 5
    assert resolve_owner_id(OwnerIdSources()) is None


def test_owner_id_rejects_garbage():
    with pytest.raises(ValidationFailure):
        resolve_owner_id(OwnerIdSources(path_user_id="not-a-number"))
    with pytest.raises(ValidationFailure):
        resolve_owner_id(OwnerIdSources(body_user_id=True))
    with pytest.raises(ValidationFailure):
        resolve_owner_id(OwnerIdSources(path_user_id="\u00b2"))


def test_owner_or_organizer(store, policy):
    owner = store.add_user()
    other = store.add_user()
    organizer = store.add_user(UserRole.ORGANIZER)

    assert policy.require_owner_or_organizer(owner.id, OwnerIdSources(path_user_id=str(owner.id))).allowed
    assert policy.require_owner_or_organizer(organizer.id, OwnerIdSources(path_user_id=str(owner.id))).allowed

    denied = policy.require_owner_or_organizer(other.id, OwnerIdSources(path_user_id=str(owner.id)))
    assert isinstance(denied.error, Forbidden)
    assert denied.reason == "Can only access your own resources"


def test_owner_or_organizer_without_owner_targets_self(store, policy):
    user = store.add_user()

    assert policy.require_owner_or_organizer(user.id, OwnerIdSources()).allowed is True


def test_owner_from_body_used_when_path_missing(store, policy):
    owner = store.add_user()
    other = store.add_user()

    decision = policy.require_owner_or_organizer(other.id, OwnerIdSources(body_user_id=owner.id))

    assert decision.allowed is False
