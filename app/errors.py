"""Business and authorization errors raised by the service layer.

None of these carry an HTTP status; ``main.py`` maps them to responses.
"""


class LeagueError(Exception):
    """Base class for every error the service layer raises on purpose."""

    kind = "error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class Unauthorized(LeagueError):
    """No principal could be resolved for the request."""

    kind = "unauthorized"

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail)


class Forbidden(LeagueError):
    """The principal is known but lacks the required capability."""

    kind = "forbidden"


class NotFound(LeagueError):
    kind = "not_found"

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class Conflict(LeagueError):
    kind = "conflict"


class DuplicateMembership(Conflict):
    """A membership row already exists for the (team, user) pair."""

    def __init__(self, detail: str = "User is already a member of this team"):
        super().__init__(detail)


class ValidationFailure(LeagueError):
    kind = "validation_failed"


def require_id(value, name: str = "id") -> int:
    """Return ``value`` if it is a structurally valid identifier."""
    # bool is an int subclass; True must not pass as id 1
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationFailure(f"Invalid {name}: {value!r}")
    return value
