"""
Teams app services layer.

Services contain business logic and orchestrate operations across models.
"""

from .exceptions import (
    TeamsServiceError,
    TeamNotFoundError,
    NotTeamMemberError,
)

from .roster import (
    get_team,
    get_team_members,
    get_member_user_ids,
    require_membership,
    players_confirmed,
)


__all__ = [
    # Exceptions
    'TeamsServiceError',
    'TeamNotFoundError',
    'NotTeamMemberError',

    # Roster
    'get_team',
    'get_team_members',
    'get_member_user_ids',
    'require_membership',
    'players_confirmed',
]
