import json
from typing import Optional
from fastapi import Request, Depends
from sqlmodel import Session

from .config import SESSION_COOKIE_NAME, auto_approve_joins
from .database import get_session
from .models.enums import UserRole
from .models.user import User
from .repositories import SqlMembershipRepository, SqlTeamRepository, SqlUserRepository
from .services.auth import get_session_user_id
from .services.membership import MembershipService
from .services.policy import Decision, OwnerIdSources, PolicyEvaluator
from .services.teams import TeamService


async def get_current_user_id(
    request: Request,
    db: Session = Depends(get_session)
) -> Optional[int]:
    """Get the id of the logged-in user from the session cookie."""
    session_token = request.cookies.get(SESSION_COOKIE_NAME)
    if not session_token:
        return None
    return get_session_user_id(db, session_token)


def get_policy(db: Session = Depends(get_session)) -> PolicyEvaluator:
    return PolicyEvaluator(SqlUserRepository(db), SqlTeamRepository(db))


def get_membership_service(
    db: Session = Depends(get_session),
    policy: PolicyEvaluator = Depends(get_policy)
) -> MembershipService:
    return MembershipService(
        SqlMembershipRepository(db),
        SqlTeamRepository(db),
        policy,
        auto_approve_joins=auto_approve_joins()
    )


def get_team_service(
    db: Session = Depends(get_session),
    policy: PolicyEvaluator = Depends(get_policy)
) -> TeamService:
    # Membership writes ride on the team's transaction
    memberships = MembershipService(
        SqlMembershipRepository(db, autocommit=False),
        SqlTeamRepository(db),
        policy,
        auto_approve_joins=auto_approve_joins()
    )
    return TeamService(db, policy, memberships)


async def require_user(
    actor_id: Optional[int] = Depends(get_current_user_id),
    policy: PolicyEvaluator = Depends(get_policy)
) -> User:
    """Require a logged-in user."""
    return policy.require_authenticated(actor_id).enforce().principal


async def require_organizer(
    actor_id: Optional[int] = Depends(get_current_user_id),
    policy: PolicyEvaluator = Depends(get_policy)
) -> User:
    """Require an ORGANIZER or ADMIN user."""
    return policy.require_organizer(actor_id).enforce().principal


async def require_admin(
    actor_id: Optional[int] = Depends(get_current_user_id),
    policy: PolicyEvaluator = Depends(get_policy)
) -> User:
    """Require an admin user."""
    return policy.require_admin(actor_id).enforce().principal


def require_role(*roles: UserRole):
    """Build a dependency that admits only the given roles."""
    async def dependency(
        actor_id: Optional[int] = Depends(get_current_user_id),
        policy: PolicyEvaluator = Depends(get_policy)
    ) -> User:
        return policy.require_role(actor_id, *roles).enforce().principal

    return dependency


async def require_captain_or_organizer(
    team_id: int,
    actor_id: Optional[int] = Depends(get_current_user_id),
    policy: PolicyEvaluator = Depends(get_policy)
) -> Decision:
    return policy.require_captain_or_organizer(actor_id, team_id).enforce()


async def owner_id_sources(request: Request) -> OwnerIdSources:
    body_user_id = None
    if await request.body():
        try:
            body = await request.json()
        except json.JSONDecodeError:
            body = None
        if isinstance(body, dict):
            body_user_id = body.get("user_id")

    return OwnerIdSources(
        path_user_id=request.path_params.get("user_id"),
        body_user_id=body_user_id,
        path_id=request.path_params.get("id")
    )


async def require_owner_or_organizer(
    sources: OwnerIdSources = Depends(owner_id_sources),
    actor_id: Optional[int] = Depends(get_current_user_id),
    policy: PolicyEvaluator = Depends(get_policy)
) -> User:
    return policy.require_owner_or_organizer(actor_id, sources).enforce().principal
