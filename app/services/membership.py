"""Team membership lifecycle.

A join creates a MEMBER row as PENDING, or APPROVED when joins are
auto-approved. After that only captains and organizers move it:

    PENDING  --approve--> APPROVED
    PENDING  --reject---> REJECTED
    APPROVED --reject---> REJECTED
    REJECTED --approve--> APPROVED

Captain rows are created directly as CAPTAIN/APPROVED with the team and
can never be rejected.
"""
import logging
from enum import Enum
from typing import Optional

from ..errors import Conflict, DuplicateMembership, NotFound, require_id
from ..models.enums import MemberRole, MemberStatus
from ..models.team import Team, TeamMembership
from ..repositories import MembershipRepository, TeamRepository
from .policy import PolicyEvaluator

logger = logging.getLogger(__name__)


class Transition(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


def initial_join_status(auto_approve: bool) -> MemberStatus:
    return MemberStatus.APPROVED if auto_approve else MemberStatus.PENDING


def next_status(membership: TeamMembership, transition: Transition) -> Optional[MemberStatus]:
    """Status to write for ``transition``, or ``None`` if the row is already there."""
    status = MemberStatus(membership.status)
    role = MemberRole(membership.role)

    if transition is Transition.APPROVE:
        if status is MemberStatus.APPROVED:
            return None
        if status is MemberStatus.PENDING or status is MemberStatus.REJECTED:
            return MemberStatus.APPROVED
    elif transition is Transition.REJECT:
        if role is MemberRole.CAPTAIN:
            raise Conflict("The team captain's membership cannot be rejected")
        if status is MemberStatus.REJECTED:
            return None
        if status is MemberStatus.PENDING or status is MemberStatus.APPROVED:
            return MemberStatus.REJECTED
    raise ValueError(f"Unhandled transition {transition!r} from {status!r}")


class MembershipService:
    def __init__(
        self,
        memberships: MembershipRepository,
        teams: TeamRepository,
        policy: PolicyEvaluator,
        auto_approve_joins: bool = False
    ):
        self.memberships = memberships
        self.teams = teams
        self.policy = policy
        self.auto_approve_joins = auto_approve_joins

    def create_captain_membership(self, team: Team, captain_id: int) -> TeamMembership:
        """Add the captain row for a team that is being created."""
        if self.memberships.find_membership(team.id, captain_id):
            raise DuplicateMembership()
        membership = self.memberships.create_membership(
            team.id, captain_id, MemberRole.CAPTAIN, MemberStatus.APPROVED
        )
        logger.info("Captain membership created team=%s user=%s", team.id, captain_id)
        return membership

    def join_team(self, team_id: int, user_id: int) -> TeamMembership:
        principal = self.policy.resolve_principal(user_id)
        require_id(team_id, "team id")

        team = self.teams.find_team_by_id(team_id)
        if not team:
            raise NotFound("Team")

        # Any existing row blocks a join, REJECTED included
        if self.memberships.find_membership(team.id, principal.id):
            raise DuplicateMembership()

        status = initial_join_status(self.auto_approve_joins)
        membership = self.memberships.create_membership(
            team.id, principal.id, MemberRole.MEMBER, status
        )
        logger.info("User %s joined team %s as %s", principal.id, team.id, status.value)
        return membership

    def approve_membership(self, team_id: int, user_id: int, actor_id: int) -> TeamMembership:
        return self._transition(team_id, user_id, actor_id, Transition.APPROVE)

    def reject_membership(self, team_id: int, user_id: int, actor_id: int) -> TeamMembership:
        return self._transition(team_id, user_id, actor_id, Transition.REJECT)

    def transfer_captaincy(self, team: Team, new_captain_id: int) -> TeamMembership:
        """Move the CAPTAIN row from ``team.captain_id`` to ``new_captain_id``.

        The old captain stays on the team as an approved MEMBER. Does not
        touch ``team.captain_id`` itself; the caller updates the team in the
        same transaction.
        """
        old = self.memberships.find_membership(team.id, team.captain_id)
        if old and MemberRole(old.role) is MemberRole.CAPTAIN:
            self.memberships.update_membership_role(old.id, MemberRole.MEMBER)

        new = self.memberships.find_membership(team.id, new_captain_id)
        if not new:
            new = self.memberships.create_membership(
                team.id, new_captain_id, MemberRole.CAPTAIN, MemberStatus.APPROVED
            )
        else:
            if MemberRole(new.role) is not MemberRole.CAPTAIN:
                new = self.memberships.update_membership_role(new.id, MemberRole.CAPTAIN)
            if MemberStatus(new.status) is not MemberStatus.APPROVED:
                new = self.memberships.update_membership_status(new.id, MemberStatus.APPROVED)

        logger.info(
            "Captaincy of team %s moved from user %s to user %s",
            team.id, team.captain_id, new_captain_id
        )
        return new

    def _transition(
        self,
        team_id: int,
        user_id: int,
        actor_id: int,
        transition: Transition
    ) -> TeamMembership:
        # Permission comes first so outsiders never learn whether the row exists
        self.policy.require_membership_manager(actor_id, team_id).enforce()
        require_id(team_id, "team id")
        require_id(user_id, "user id")

        membership = self.memberships.find_membership(team_id, user_id)
        if not membership:
            raise NotFound("Team membership")

        status = next_status(membership, transition)
        if status is None:
            return membership

        updated = self.memberships.update_membership_status(membership.id, status)
        logger.info(
            "Membership %s of user %s in team %s: %s by user %s",
            membership.id, user_id, team_id, transition.value, actor_id
        )
        return updated
