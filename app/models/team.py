from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint

from .enums import MemberRole, MemberStatus


class Team(SQLModel, table=True):
    """A team registered in a league, captained by one user."""
    __tablename__ = "teams"
    __table_args__ = (UniqueConstraint("league_id", "name", name="unique_league_team_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, max_length=50)
    color: Optional[str] = Field(default=None, max_length=7)
    league_id: int = Field(foreign_key="leagues.id", index=True)
    captain_id: int = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class TeamMembership(SQLModel, table=True):
    __tablename__ = "team_memberships"
    __table_args__ = (UniqueConstraint("team_id", "user_id", name="unique_team_user"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="teams.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    role: MemberRole = Field(default=MemberRole.MEMBER)
    status: MemberStatus = Field(default=MemberStatus.PENDING)
    created_at: datetime = Field(default_factory=datetime.utcnow)
