from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlmodel import Session

from ..database import get_session
from ..dependencies import get_team_service, require_organizer, require_user
from ..models.user import User
from ..services import leagues as league_service
from ..services.teams import TeamService
from .teams import TeamSummaryResponse

router = APIRouter(prefix="/leagues", tags=["leagues"])
public_router = APIRouter(prefix="/public", tags=["public"])


class LeagueCreate(BaseModel):
    name: str
    slug: Optional[str] = None
    season: Optional[str] = None
    is_active: bool = True


class LeagueUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    season: Optional[str] = None
    is_active: Optional[bool] = None


class LeagueResponse(BaseModel):
    id: int
    name: str
    slug: str
    season: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


@router.post("", response_model=LeagueResponse, status_code=status.HTTP_201_CREATED)
async def create_league(
    payload: LeagueCreate,
    current_user: User = Depends(require_organizer),
    db: Session = Depends(get_session)
):
    return league_service.create_league(
        db,
        payload.name,
        slug=payload.slug,
        season=payload.season,
        is_active=payload.is_active
    )


@router.get("", response_model=List[LeagueResponse])
async def list_leagues(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return league_service.list_leagues(db)


@router.get("/{league_id}", response_model=LeagueResponse)
async def get_league(
    league_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return league_service.get_league(db, league_id)


@router.patch("/{league_id}", response_model=LeagueResponse)
async def update_league(
    league_id: int,
    payload: LeagueUpdate,
    current_user: User = Depends(require_organizer),
    db: Session = Depends(get_session)
):
    return league_service.update_league(db, league_id, payload.model_dump(exclude_unset=True))


@router.delete("/{league_id}")
async def delete_league(
    league_id: int,
    current_user: User = Depends(require_organizer),
    db: Session = Depends(get_session)
):
    league_service.delete_league(db, league_id)
    return {"status": "deleted"}


@router.get("/{league_id}/teams", response_model=List[TeamSummaryResponse])
async def league_teams(
    league_id: int,
    current_user: User = Depends(require_user),
    teams: TeamService = Depends(get_team_service)
):
    return teams.league_teams(league_id)


@public_router.get("/leagues/{slug}", response_model=LeagueResponse)
async def public_league(slug: str, db: Session = Depends(get_session)):
    return league_service.get_active_league_by_slug(db, slug)


@public_router.get("/leagues/{slug}/teams", response_model=List[TeamSummaryResponse])
async def public_league_teams(
    slug: str,
    db: Session = Depends(get_session),
    teams: TeamService = Depends(get_team_service)
):
    league = league_service.get_active_league_by_slug(db, slug)
    return teams.league_teams(league.id)
