from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from ..database import get_session
from ..dependencies import (
    get_team_service,
    require_admin,
    require_organizer,
    require_owner_or_organizer,
    require_role,
    require_user,
)
from ..models.enums import UserRole
from ..models.user import User
from ..services import users as user_service
from ..services.teams import TeamService
from .auth import UserResponse
from .teams import MembershipResponse

router = APIRouter(prefix="/users", tags=["users"])


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    user_id: Optional[int] = None


class RoleUpdate(BaseModel):
    role: UserRole


@router.get("/me", response_model=UserResponse)
async def get_profile(current_user: User = Depends(require_user)):
    return current_user


@router.get("/me/memberships", response_model=List[MembershipResponse])
async def my_memberships(
    current_user: User = Depends(require_user),
    teams: TeamService = Depends(get_team_service)
):
    return teams.user_memberships(current_user.id)


@router.get("", response_model=List[UserResponse])
async def list_users(
    current_user: User = Depends(require_role(UserRole.ORGANIZER, UserRole.ADMIN)),
    db: Session = Depends(get_session)
):
    return user_service.list_users(db)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_profile(
    user_id: int,
    payload: ProfileUpdate,
    current_user: User = Depends(require_owner_or_organizer),
    db: Session = Depends(get_session)
):
    """Update name or email. Users may only edit themselves unless they are organizers."""
    changes = payload.model_dump(exclude_unset=True, exclude={"user_id"})
    return user_service.update_profile(db, user_id, changes)


@router.patch("/{user_id}/role", response_model=UserResponse)
async def update_role(
    user_id: int,
    payload: RoleUpdate,
    current_user: User = Depends(require_organizer),
    db: Session = Depends(get_session)
):
    return user_service.update_role(db, current_user, user_id, payload.role)


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    user_service.delete_user(db, current_user, user_id)
    return {"status": "deleted"}
