"""Data-access collaborators handed to the policy and membership services.

The services only depend on the ``Protocol`` classes; the ``Sql*`` classes
are the SQLModel-backed versions wired up in ``app.dependencies``.
"""
import logging
from typing import Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .errors import DuplicateMembership, NotFound
from .models.enums import MemberRole, MemberStatus
from .models.team import Team, TeamMembership
from .models.user import User

logger = logging.getLogger(__name__)


class PrincipalRepository(Protocol):
    def find_principal_by_id(self, user_id: int) -> Optional[User]: ...


class TeamRepository(Protocol):
    def find_team_by_id(self, team_id: int) -> Optional[Team]: ...


class MembershipRepository(Protocol):
    def find_membership(self, team_id: int, user_id: int) -> Optional[TeamMembership]: ...

    def create_membership(
        self,
        team_id: int,
        user_id: int,
        role: MemberRole,
        status: MemberStatus
    ) -> TeamMembership: ...

    def update_membership_status(self, membership_id: int, status: MemberStatus) -> TeamMembership: ...

    def update_membership_role(self, membership_id: int, role: MemberRole) -> TeamMembership: ...


class SqlUserRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_principal_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)


class SqlTeamRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_team_by_id(self, team_id: int) -> Optional[Team]:
        return self.db.get(Team, team_id)


class SqlMembershipRepository:
    """Membership rows in ``team_memberships``.

    With ``autocommit=False`` writes are only flushed, so the caller can
    group them with other changes (team creation, captain hand-over) and
    commit once.
    """

    def __init__(self, db: Session, autocommit: bool = True):
        self.db = db
        self.autocommit = autocommit

    def find_membership(self, team_id: int, user_id: int) -> Optional[TeamMembership]:
        statement = select(TeamMembership).where(
            TeamMembership.team_id == team_id,
            TeamMembership.user_id == user_id
        )
        return self.db.exec(statement).first()

    def create_membership(
        self,
        team_id: int,
        user_id: int,
        role: MemberRole,
        status: MemberStatus
    ) -> TeamMembership:
        membership = TeamMembership(
            team_id=team_id,
            user_id=user_id,
            role=role,
            status=status
        )
        self.db.add(membership)
        try:
            self.db.flush()
        except IntegrityError as exc:
            # A concurrent join won the race on the unique (team_id, user_id) key
            self.db.rollback()
            logger.warning(
                "Unique violation creating membership team=%s user=%s", team_id, user_id
            )
            raise DuplicateMembership() from exc
        return self._finish(membership)

    def update_membership_status(self, membership_id: int, status: MemberStatus) -> TeamMembership:
        membership = self._get(membership_id)
        membership.status = status
        self.db.add(membership)
        self.db.flush()
        return self._finish(membership)

    def update_membership_role(self, membership_id: int, role: MemberRole) -> TeamMembership:
        membership = self._get(membership_id)
        membership.role = role
        self.db.add(membership)
        self.db.flush()
        return self._finish(membership)

    def _get(self, membership_id: int) -> TeamMembership:
        membership = self.db.get(TeamMembership, membership_id)
        if not membership:
            raise NotFound("Team membership")
        return membership

    def _finish(self, membership: TeamMembership) -> TeamMembership:
        if self.autocommit:
            self.db.commit()
            self.db.refresh(membership)
        return membership
