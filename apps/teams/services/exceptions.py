"""
Domain-specific exceptions for teams app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class TeamsServiceError(Exception):
    """Base exception for all teams service errors."""
    code = 'teams_error'


class TeamNotFoundError(TeamsServiceError):
    """Raised when a team does not exist or is inaccessible."""
    code = 'team_not_found'


class NotTeamMemberError(TeamsServiceError):
    """Raised when a user tries to perform an action requiring membership."""
    code = 'not_team_member'
