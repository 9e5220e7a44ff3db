"""Request-facing authorization guards.

Every guard resolves the acting principal first, so "nobody is logged in"
(``Unauthorized``) is never confused with "logged in but not allowed"
(``Forbidden``). Guards return a ``Decision`` instead of raising; call
``Decision.enforce()`` to turn a denial into its typed error.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..errors import (
    Forbidden,
    LeagueError,
    NotFound,
    Unauthorized,
    ValidationFailure,
    require_id,
)
from ..models.enums import UserRole
from ..models.team import Team
from ..models.user import User
from ..repositories import PrincipalRepository, TeamRepository
from .ownership import can_approve_or_reject_membership, can_delete_team, can_modify_team
from .roles import has_admin_privileges, has_organizer_privileges

logger = logging.getLogger(__name__)

ORGANIZER_REQUIRED = "Organizer privileges required"
ADMIN_REQUIRED = "Administrator privileges required"
CAPTAIN_OR_ORGANIZER_REQUIRED = "Must be team captain or organizer to perform this action"
OWNER_OR_ORGANIZER_REQUIRED = "Can only access your own resources"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    error: Optional[LeagueError] = None
    principal: Optional[User] = None
    # Set when the guard had to load the team; reuse it instead of fetching again
    team: Optional[Team] = None

    @property
    def reason(self) -> Optional[str]:
        return self.error.detail if self.error else None

    @classmethod
    def allow(cls, principal: User, team: Optional[Team] = None) -> "Decision":
        return cls(allowed=True, principal=principal, team=team)

    @classmethod
    def deny(cls, error: LeagueError, principal: Optional[User] = None) -> "Decision":
        return cls(allowed=False, error=error, principal=principal)

    def enforce(self) -> "Decision":
        if not self.allowed:
            raise self.error
        return self


@dataclass(frozen=True)
class OwnerIdSources:
    """Places a resource owner id may come from, in lookup order."""
    path_user_id: Any = None
    body_user_id: Any = None
    path_id: Any = None


def _as_id(value: Any, name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        # isdigit() alone admits characters like "²" that int() rejects
        if not (value.isascii() and value.isdigit()):
            raise ValidationFailure(f"Invalid {name}: {value!r}")
        value = int(value)
    return require_id(value, name)


def resolve_owner_id(sources: OwnerIdSources) -> Optional[int]:
    """Return the first owner id found: path ``user_id``, body ``user_id``, path ``id``."""
    candidates = (
        ("user_id", sources.path_user_id),
        ("user_id", sources.body_user_id),
        ("id", sources.path_id),
    )
    for name, raw in candidates:
        owner_id = _as_id(raw, name)
        if owner_id is not None:
            return owner_id
    return None


class PolicyEvaluator:
    def __init__(self, principals: PrincipalRepository, teams: TeamRepository):
        self.principals = principals
        self.teams = teams

    def resolve_principal(self, actor_id: Optional[int]) -> User:
        if actor_id is None:
            raise Unauthorized()
        principal = self.principals.find_principal_by_id(require_id(actor_id, "actor id"))
        if not principal:
            raise Unauthorized("User not found")
        return principal

    def require_authenticated(self, actor_id: Optional[int]) -> Decision:
        try:
            return Decision.allow(self.resolve_principal(actor_id))
        except LeagueError as exc:
            return Decision.deny(exc)

    def require_organizer(self, actor_id: Optional[int]) -> Decision:
        return self._require(actor_id, has_organizer_privileges, ORGANIZER_REQUIRED)

    def require_admin(self, actor_id: Optional[int]) -> Decision:
        return self._require(actor_id, has_admin_privileges, ADMIN_REQUIRED)

    def require_role(self, actor_id: Optional[int], *roles: UserRole) -> Decision:
        allowed = {UserRole(role) for role in roles}
        reason = "Access denied. Required role: " + " or ".join(role.value for role in roles)
        return self._require(actor_id, lambda principal: UserRole(principal.role) in allowed, reason)

    def require_captain_or_organizer(self, actor_id: Optional[int], team_id: Any) -> Decision:
        """Guard for editing a team: its captain or any organizer."""
        return self._require_team_guard(
            actor_id, team_id, can_modify_team, CAPTAIN_OR_ORGANIZER_REQUIRED
        )

    def require_membership_manager(self, actor_id: Optional[int], team_id: Any) -> Decision:
        """Guard for approving or rejecting join requests."""
        return self._require_team_guard(
            actor_id, team_id, can_approve_or_reject_membership, CAPTAIN_OR_ORGANIZER_REQUIRED
        )

    def require_team_deletion(self, actor_id: Optional[int], team_id: Any) -> Decision:
        return self._require_team_guard(actor_id, team_id, can_delete_team, ORGANIZER_REQUIRED)

    def _require_team_guard(self, actor_id, team_id, guard, reason: str) -> Decision:
        decision = self.require_authenticated(actor_id)
        if not decision.allowed:
            return decision
        principal = decision.principal

        # Organizers pass every team guard, so they never need the team loaded
        if has_organizer_privileges(principal):
            return decision

        try:
            team = self.teams.find_team_by_id(require_id(team_id, "team id"))
        except ValidationFailure as exc:
            return Decision.deny(exc, principal)
        if not team:
            return Decision.deny(NotFound("Team"), principal)

        if not guard(principal, team):
            return self._denied(principal, reason)
        return Decision.allow(principal, team)

    def require_owner_or_organizer(self, actor_id: Optional[int], sources: OwnerIdSources) -> Decision:
        decision = self.require_authenticated(actor_id)
        if not decision.allowed:
            return decision
        principal = decision.principal

        if has_organizer_privileges(principal):
            return decision

        try:
            owner_id = resolve_owner_id(sources)
        except ValidationFailure as exc:
            return Decision.deny(exc, principal)

        # No owner named anywhere: the request targets the caller's own resource
        if owner_id is not None and owner_id != principal.id:
            return self._denied(principal, OWNER_OR_ORGANIZER_REQUIRED)
        return decision

    def _require(self, actor_id, predicate, reason: str) -> Decision:
        decision = self.require_authenticated(actor_id)
        if not decision.allowed:
            return decision
        if not predicate(decision.principal):
            return self._denied(decision.principal, reason)
        return decision

    def _denied(self, principal: User, reason: str) -> Decision:
        logger.info("Denied user=%s role=%s: %s", principal.id, principal.role, reason)
        return Decision.deny(Forbidden(reason), principal)
