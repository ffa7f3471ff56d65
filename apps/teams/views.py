from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import TeamProgressSerializer

from apps.teams.services import (
    get_team,
    require_membership,
    TeamNotFoundError,
    NotTeamMemberError,
)
from apps.orders.services import get_team_progress


@extend_schema(responses={200: TeamProgressSerializer})
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def team_progress(request, team_id):
    """
    Get order placement and production progress of a team.

    GET /api/teams/{id}/progress/
    """
    try:
        team = get_team(team_id=team_id)
        if not request.user.is_staff:
            require_membership(team=team, user=request.user)
    except TeamNotFoundError as e:
        return Response({'error': str(e), 'code': e.code}, status=status.HTTP_404_NOT_FOUND)
    except NotTeamMemberError as e:
        return Response({'error': str(e), 'code': e.code}, status=status.HTTP_403_FORBIDDEN)

    progress = get_team_progress(team_id=team.id)
    return Response(TeamProgressSerializer(progress.as_dict()).data)
