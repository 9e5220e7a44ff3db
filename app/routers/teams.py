from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from ..dependencies import (
    get_current_user_id,
    get_membership_service,
    get_team_service,
    require_captain_or_organizer,
    require_user,
)
from ..models.enums import MemberRole, MemberStatus
from ..models.user import User
from ..services.membership import MembershipService
from ..services.policy import Decision
from ..services.teams import TeamService, membership_view

router = APIRouter(prefix="/teams", tags=["teams"])


class TeamCreate(BaseModel):
    name: str
    league_id: int
    color: Optional[str] = None


class TeamUpdate(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None
    captain_id: Optional[int] = None


class TeamMemberResponse(BaseModel):
    id: int
    user_id: int
    user_name: str
    user_email: str
    role: MemberRole
    status: MemberStatus
    created_at: datetime


class TeamResponse(BaseModel):
    id: int
    name: str
    color: Optional[str]
    league_id: int
    captain_id: int
    captain_name: Optional[str]
    created_at: datetime
    members: List[TeamMemberResponse]
    member_count: int
    approved_member_count: int


class TeamSummaryResponse(BaseModel):
    id: int
    name: str
    color: Optional[str]
    league_id: int
    captain_id: int
    captain_name: Optional[str]
    member_count: int
    approved_member_count: int
    created_at: datetime


class MembershipResponse(BaseModel):
    id: int
    team_id: int
    team_name: str
    user_id: int
    role: MemberRole
    status: MemberStatus
    created_at: datetime


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    payload: TeamCreate,
    current_user: User = Depends(require_user),
    teams: TeamService = Depends(get_team_service)
):
    """Create a team; the creator becomes its captain."""
    team = teams.create_team(current_user.id, payload.league_id, payload.name, payload.color)
    return teams.team_detail(team)


@router.get("/{team_id}", response_model=TeamResponse)
async def team_detail(
    team_id: int,
    current_user: User = Depends(require_user),
    teams: TeamService = Depends(get_team_service)
):
    return teams.team_detail(teams.get_team(team_id))


@router.patch("/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: int,
    payload: TeamUpdate,
    actor_id: Optional[int] = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service)
):
    """Rename, recolor or hand over captaincy (captain or organizer)."""
    team = teams.update_team(team_id, actor_id, payload.model_dump(exclude_unset=True))
    return teams.team_detail(team)


@router.delete("/{team_id}")
async def delete_team(
    team_id: int,
    actor_id: Optional[int] = Depends(get_current_user_id),
    teams: TeamService = Depends(get_team_service)
):
    """Organizers only; captains cannot delete their own team."""
    teams.delete_team(team_id, actor_id)
    return {"status": "deleted"}


@router.post("/{team_id}/join", response_model=MembershipResponse, status_code=status.HTTP_201_CREATED)
async def join_team(
    team_id: int,
    actor_id: Optional[int] = Depends(get_current_user_id),
    memberships: MembershipService = Depends(get_membership_service),
    teams: TeamService = Depends(get_team_service)
):
    membership = memberships.join_team(team_id, actor_id)
    return membership_view(membership, teams.get_team(team_id))


@router.get("/{team_id}/requests", response_model=List[TeamMemberResponse])
async def pending_requests(
    team_id: int,
    decision: Decision = Depends(require_captain_or_organizer),
    teams: TeamService = Depends(get_team_service)
):
    """Join requests awaiting approval."""
    team = decision.team or teams.get_team(team_id)
    return teams.pending_requests(team)


@router.post("/{team_id}/members/{user_id}/approve", response_model=MembershipResponse)
async def approve_member(
    team_id: int,
    user_id: int,
    actor_id: Optional[int] = Depends(get_current_user_id),
    memberships: MembershipService = Depends(get_membership_service),
    teams: TeamService = Depends(get_team_service)
):
    membership = memberships.approve_membership(team_id, user_id, actor_id)
    return membership_view(membership, teams.get_team(team_id))


@router.post("/{team_id}/members/{user_id}/reject", response_model=MembershipResponse)
async def reject_member(
    team_id: int,
    user_id: int,
    actor_id: Optional[int] = Depends(get_current_user_id),
    memberships: MembershipService = Depends(get_membership_service),
    teams: TeamService = Depends(get_team_service)
):
    membership = memberships.reject_membership(team_id, user_id, actor_id)
    return membership_view(membership, teams.get_team(team_id))
