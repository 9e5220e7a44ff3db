from enum import Enum


class UserRole(str, Enum):
    """Account-wide role of a principal."""
    REGULAR = "REGULAR"
    ORGANIZER = "ORGANIZER"
    ADMIN = "ADMIN"


class MemberRole(str, Enum):
    """Role a user holds inside a single team."""
    CAPTAIN = "CAPTAIN"
    MEMBER = "MEMBER"


class MemberStatus(str, Enum):
    """Approval state of a team membership."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
