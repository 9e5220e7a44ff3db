"""Who may change a team.

All checks take an already-loaded actor and team; loading them is the
caller's job.
"""
from ..models.team import Team
from ..models.user import User
from .roles import has_organizer_privileges


def is_captain(actor: User, team: Team) -> bool:
    return actor.id is not None and actor.id == team.captain_id


def can_modify_team(actor: User, team: Team) -> bool:
    """Captain may rename, recolor or hand over the team."""
    return is_captain(actor, team) or has_organizer_privileges(actor)


def can_delete_team(actor: User, team: Team) -> bool:
    """Deleting is reserved to organizers; the captain is not enough."""
    return has_organizer_privileges(actor)


def can_approve_or_reject_membership(actor: User, team: Team) -> bool:
    return is_captain(actor, team) or has_organizer_privileges(actor)
