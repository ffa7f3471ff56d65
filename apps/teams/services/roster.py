"""
Roster service.

The team membership list is the authoritative roster: orders get one
line item per member and the progress tracker reads player submissions
against it.
"""

from typing import List
from uuid import UUID

from django.core.exceptions import ValidationError
from django.db.models import QuerySet

from apps.teams.models import Team, TeamMembership, PlayerInfoSubmission

from .exceptions import TeamNotFoundError, NotTeamMemberError


def get_team(*, team_id: UUID) -> Team:
    """
    Get a team by ID.

    Raises:
        TeamNotFoundError: If team doesn't exist
    """
    try:
        return Team.objects.select_related('owner', 'sport').get(id=team_id)
    except (Team.DoesNotExist, ValidationError):
        raise TeamNotFoundError(f"Team with ID {team_id} not found")


def get_team_members(*, team_id: UUID) -> QuerySet[TeamMembership]:
    """
    Get all memberships of a team in join order.

    Join order is stable, so order items come out in the same
    sequence on every assembly.

    Raises:
        TeamNotFoundError: If team doesn't exist
    """
    if not Team.objects.filter(id=team_id).exists():
        raise TeamNotFoundError(f"Team with ID {team_id} not found")

    return (
        TeamMembership.objects
        .filter(team_id=team_id)
        .select_related('user')
        .order_by('joined_at', 'id')
    )


def get_member_user_ids(*, team_id: UUID) -> List[UUID]:
    """Return the user ids of every team member."""
    return [m.user_id for m in get_team_members(team_id=team_id)]


def require_membership(*, team: Team, user) -> TeamMembership:
    """
    Return the user's membership in the team.

    Raises:
        NotTeamMemberError: If the user is not a member
    """
    try:
        return team.memberships.get(user=user)
    except TeamMembership.DoesNotExist:
        raise NotTeamMemberError(f"User is not a member of {team.name}")


def players_confirmed(*, team_id: UUID) -> bool:
    """
    True when at least one player submission exists and every
    submission has been confirmed by its player.

    Partial rosters do not count as complete.
    """
    submissions = PlayerInfoSubmission.objects.filter(team_id=team_id)
    if not submissions.exists():
        return False
    return not submissions.filter(confirmed_by_player=False).exists()
