import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.teams.models import Team, TeamMembership, TeamRole


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def coach(db):
    return User.objects.create_user(email='coach@example.com', password='TestPass123!', full_name='Coach')


@pytest.fixture
def striker(db):
    return User.objects.create_user(email='striker@example.com', password='TestPass123!', full_name='Striker')


@pytest.fixture
def keeper(db):
    return User.objects.create_user(email='keeper@example.com', password='TestPass123!')


@pytest.fixture
def stranger(db):
    return User.objects.create_user(email='stranger@example.com', password='TestPass123!')


@pytest.fixture
def roster_team(db, coach, striker, keeper):
    """Team with coach (owner), striker and keeper."""
    team = Team.objects.create(name='Club Deportivo', slug='club-deportivo', owner=coach)
    TeamMembership.objects.create(user=coach, team=team, role=TeamRole.PLAYER)
    TeamMembership.objects.create(user=striker, team=team, role=TeamRole.PLAYER)
    TeamMembership.objects.create(user=keeper, team=team, role=TeamRole.MANAGER)
    return team


@pytest.fixture
def striker_client(api_client, striker):
    """Return API client authenticated as a team player."""
    refresh = RefreshToken.for_user(striker)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def stranger_client(api_client, stranger):
    """Return API client authenticated as non-member user."""
    refresh = RefreshToken.for_user(stranger)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client
