import logging
import re
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, func

from ..errors import Conflict, NotFound, ValidationFailure, require_id
from ..models.enums import MemberStatus
from ..models.team import Team, TeamMembership
from ..models.user import User
from .leagues import get_league
from .membership import MembershipService
from .policy import PolicyEvaluator

logger = logging.getLogger(__name__)

COLOR_PATTERN = re.compile(r'^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$')


def validate_team_name(name: str) -> str:
    name = (name or "").strip()
    if not 2 <= len(name) <= 50:
        raise ValidationFailure("Team name must be between 2 and 50 characters")
    return name


def normalize_color(color: Optional[str]) -> Optional[str]:
    """Validate a hex color and return it upper-cased."""
    if not color:
        return None
    if not COLOR_PATTERN.match(color):
        raise ValidationFailure("Team color must be a valid hex color code (e.g., #FF0000)")
    return color.upper()


def count_members(db: Session, team_id: int, status: Optional[MemberStatus] = None) -> int:
    statement = select(func.count(TeamMembership.id)).where(TeamMembership.team_id == team_id)
    if status is not None:
        statement = statement.where(TeamMembership.status == status)
    return db.exec(statement).one()


def approved_member_count(db: Session, team_id: int) -> int:
    return count_members(db, team_id, MemberStatus.APPROVED)


class TeamService:
    """Team aggregate operations.

    ``memberships`` must write without committing; every method here ends in
    exactly one commit so a team and its membership rows change together.
    """

    def __init__(self, db: Session, policy: PolicyEvaluator, memberships: MembershipService):
        self.db = db
        self.policy = policy
        self.memberships = memberships

    def get_team(self, team_id: int) -> Team:
        team = self.db.get(Team, require_id(team_id, "team id"))
        if not team:
            raise NotFound("Team")
        return team

    def create_team(
        self,
        actor_id: int,
        league_id: int,
        name: str,
        color: Optional[str] = None
    ) -> Team:
        """Create a team captained by the acting user."""
        captain = self.policy.resolve_principal(actor_id)
        league = get_league(self.db, require_id(league_id, "league id"))
        name = validate_team_name(name)
        color = normalize_color(color)
        self._ensure_name_free(league.id, name)

        team = Team(name=name, color=color, league_id=league.id, captain_id=captain.id)
        self.db.add(team)
        self._flush_unique_name(league.id, name)

        self.memberships.create_captain_membership(team, captain.id)
        self.db.commit()
        self.db.refresh(team)
        logger.info("Team %s created in league %s by user %s", team.id, league.id, captain.id)
        return team

    def update_team(self, team_id: int, actor_id: int, changes: dict) -> Team:
        decision = self.policy.require_captain_or_organizer(actor_id, team_id).enforce()
        # Reuse the team the guard loaded for captains
        team = decision.team or self.get_team(team_id)

        if changes.get("name") is not None:
            name = validate_team_name(changes["name"])
            if name != team.name:
                self._ensure_name_free(team.league_id, name)
            team.name = name
        if "color" in changes:
            team.color = normalize_color(changes["color"])

        new_captain_id = changes.get("captain_id")
        if new_captain_id is not None and new_captain_id != team.captain_id:
            self._reassign_captain(team, require_id(new_captain_id, "captain id"))

        self.db.add(team)
        self._flush_unique_name(team.league_id, team.name)
        self.db.commit()
        self.db.refresh(team)
        return team

    def delete_team(self, team_id: int, actor_id: int) -> None:
        decision = self.policy.require_team_deletion(actor_id, team_id).enforce()
        team = decision.team or self.get_team(team_id)

        memberships = self.db.exec(
            select(TeamMembership).where(TeamMembership.team_id == team.id)
        ).all()
        for membership in memberships:
            self.db.delete(membership)
        self.db.delete(team)
        self.db.commit()
        logger.info("Team %s deleted by user %s", team_id, decision.principal.id)

    def team_detail(self, team: Team) -> dict:
        """Team with its members and derived counts."""
        rows = self.db.exec(
            select(TeamMembership, User)
            .join(User, User.id == TeamMembership.user_id)
            .where(TeamMembership.team_id == team.id)
            .order_by(TeamMembership.created_at)
        ).all()
        captain = self.db.get(User, team.captain_id)

        members = [member_view(membership, user) for membership, user in rows]

        return {
            "id": team.id,
            "name": team.name,
            "color": team.color,
            "league_id": team.league_id,
            "captain_id": team.captain_id,
            "captain_name": captain.name if captain else None,
            "created_at": team.created_at,
            "members": members,
            "member_count": len(members),
            "approved_member_count": sum(
                1 for m in members if MemberStatus(m["status"]) is MemberStatus.APPROVED
            ),
        }

    def league_teams(self, league_id: int) -> list[dict]:
        league = get_league(self.db, require_id(league_id, "league id"))
        teams = self.db.exec(
            select(Team).where(Team.league_id == league.id).order_by(Team.name)
        ).all()

        summaries = []
        for team in teams:
            captain = self.db.get(User, team.captain_id)
            summaries.append({
                "id": team.id,
                "name": team.name,
                "color": team.color,
                "league_id": team.league_id,
                "captain_id": team.captain_id,
                "captain_name": captain.name if captain else None,
                "member_count": count_members(self.db, team.id),
                "approved_member_count": approved_member_count(self.db, team.id),
                "created_at": team.created_at,
            })
        return summaries

    def pending_requests(self, team: Team) -> list[dict]:
        """Join requests still waiting for the captain or an organizer."""
        rows = self.db.exec(
            select(TeamMembership, User)
            .join(User, User.id == TeamMembership.user_id)
            .where(
                TeamMembership.team_id == team.id,
                TeamMembership.status == MemberStatus.PENDING
            )
            .order_by(TeamMembership.created_at)
        ).all()
        return [member_view(membership, user) for membership, user in rows]

    def user_memberships(self, user_id: int) -> list[dict]:
        rows = self.db.exec(
            select(TeamMembership, Team)
            .join(Team, Team.id == TeamMembership.team_id)
            .where(TeamMembership.user_id == user_id)
            .order_by(TeamMembership.created_at)
        ).all()
        return [membership_view(membership, team) for membership, team in rows]

    def _reassign_captain(self, team: Team, new_captain_id: int) -> None:
        if not self.db.get(User, new_captain_id):
            raise NotFound("User")
        self.memberships.transfer_captaincy(team, new_captain_id)
        team.captain_id = new_captain_id

    def _ensure_name_free(self, league_id: int, name: str) -> None:
        existing = self.db.exec(
            select(Team).where(Team.league_id == league_id, Team.name == name)
        ).first()
        if existing:
            raise Conflict(f"Team with name '{name}' already exists in this league")

    def _flush_unique_name(self, league_id: int, name: str) -> None:
        # A concurrent create or rename can slip past _ensure_name_free
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Unique violation on team name league=%s name=%s", league_id, name)
            raise Conflict(f"Team with name '{name}' already exists in this league") from exc


def membership_view(membership: TeamMembership, team: Team) -> dict:
    return {
        "id": membership.id,
        "team_id": team.id,
        "team_name": team.name,
        "user_id": membership.user_id,
        "role": membership.role,
        "status": membership.status,
        "created_at": membership.created_at,
    }


def member_view(membership: TeamMembership, user: User) -> dict:
    return {
        "id": membership.id,
        "user_id": user.id,
        "user_name": user.name,
        "user_email": user.email,
        "role": membership.role,
        "status": membership.status,
        "created_at": membership.created_at,
    }
