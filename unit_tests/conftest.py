import pytest

from app.errors import DuplicateMembership, NotFound
from app.models import MemberRole, MemberStatus, Team, TeamMembership, User, UserRole
from app.services.membership import MembershipService
from app.services.policy import PolicyEvaluator


class InMemoryStore:
    """Stands in for the principal, team and membership repositories."""

    def __init__(self):
        self.users = {}
        self.teams = {}
        self.memberships = {}
        self.team_lookups = 0
        self._next_id = 1

    def _id(self) -> int:
        next_id = self._next_id
        self._next_id += 1
        return next_id

    def add_user(self, role: UserRole = UserRole.REGULAR) -> User:
        user_id = self._id()
        user = User(
            id=user_id,
            email=f"user{user_id}@example.com",
            name=f"User {user_id}",
            password_hash="hashed",
            role=role
        )
        self.users[user.id] = user
        return user

    def add_team(self, captain: User, with_captain_row: bool = True) -> Team:
        team = Team(id=self._id(), name=f"Team {len(self.teams) + 1}", league_id=1, captain_id=captain.id)
        self.teams[team.id] = team
        if with_captain_row:
            self.create_membership(team.id, captain.id, MemberRole.CAPTAIN, MemberStatus.APPROVED)
        return team

    def find_principal_by_id(self, user_id):
        return self.users.get(user_id)

    def find_team_by_id(self, team_id):
        self.team_lookups += 1
        return self.teams.get(team_id)

    def find_membership(self, team_id, user_id):
        return self.memberships.get((team_id, user_id))

    def create_membership(self, team_id, user_id, role, status):
        # Mirrors the unique (team_id, user_id) constraint
        if (team_id, user_id) in self.memberships:
            raise DuplicateMembership()
        membership = TeamMembership(
            id=self._id(), team_id=team_id, user_id=user_id, role=role, status=status
        )
        self.memberships[(team_id, user_id)] = membership
        return membership

    def _by_id(self, membership_id):
        for membership in self.memberships.values():
            if membership.id == membership_id:
                return membership
        raise NotFound("Team membership")

    def update_membership_status(self, membership_id, status):
        membership = self._by_id(membership_id)
        membership.status = status
        return membership

    def update_membership_role(self, membership_id, role):
        membership = self._by_id(membership_id)
        membership.role = role
        return membership


@pytest.fixture(name="store")
def store_fixture():
    return InMemoryStore()


@pytest.fixture(name="policy")
def policy_fixture(store):
    return PolicyEvaluator(store, store)


@pytest.fixture(name="memberships")
def memberships_fixture(store, policy):
    return MembershipService(store, store, policy, auto_approve_joins=False)
