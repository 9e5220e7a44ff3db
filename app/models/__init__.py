from .enums import UserRole, MemberRole, MemberStatus
from .user import User
from .session import Session
from .league import League
from .team import Team, TeamMembership

__all__ = [
    "UserRole",
    "MemberRole",
    "MemberStatus",
    "User",
    "Session",
    "League",
    "Team",
    "TeamMembership",
]
