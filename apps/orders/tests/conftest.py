import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.catalog.models import Product
from apps.orders.models import DesignRequest
from apps.teams.models import Team, TeamMembership, TeamRole


def make_client(user):
    """Return an API client authenticated as the given user."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


def _add_players(team, count, prefix='player'):
    """Add `count` player members to a team and return their users."""
    users = []
    for i in range(count):
        user = User.objects.create_user(
            email=f'{prefix}{i}@{team.slug}.example.com',
            password='TestPass123!',
            full_name=f'Player {i}',
        )
        TeamMembership.objects.create(user=user, team=team, role=TeamRole.PLAYER)
        users.append(user)
    return users


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def team_owner(db):
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        full_name='Team Owner',
    )


@pytest.fixture
def team_manager(db):
    return User.objects.create_user(
        email='manager@example.com',
        password='TestPass123!',
        full_name='Team Manager',
    )


@pytest.fixture
def team_player(db):
    return User.objects.create_user(
        email='player@example.com',
        password='TestPass123!',
        full_name='Team Player',
    )


@pytest.fixture
def outsider(db):
    """User not in any team."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
        full_name='Outsider',
    )


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(
        email='staff@example.com',
        password='TestPass123!',
        full_name='Production Staff',
        is_staff=True,
    )


@pytest.fixture
def team(db, team_owner):
    """Team with only its owner as member."""
    team = Team.objects.create(name='Los Halcones', slug='los-halcones', owner=team_owner)
    TeamMembership.objects.create(user=team_owner, team=team, role=TeamRole.OWNER)
    return team


@pytest.fixture
def team_with_members(team, team_manager, team_player):
    """Team with owner, manager and player (3 members)."""
    TeamMembership.objects.create(user=team_manager, team=team, role=TeamRole.MANAGER)
    TeamMembership.objects.create(user=team_player, team=team, role=TeamRole.PLAYER)
    return team


@pytest.fixture
def other_team(db, outsider):
    team = Team.objects.create(name='Los Pumas', slug='los-pumas', owner=outsider)
    TeamMembership.objects.create(user=outsider, team=team, role=TeamRole.OWNER)
    return team


@pytest.fixture
def product(db):
    return Product.objects.create(
        name='Camiseta Local',
        slug='camiseta-local',
        category='jersey',
        price_clp=10000,
    )


@pytest.fixture
def design_request(db, team, team_owner, product):
    return DesignRequest.objects.create(
        team=team,
        requested_by=team_owner,
        product_slug=product.slug,
        product_name=product.name,
        mockup_urls=['https://cdn.example.com/mockups/1.png'],
    )


@pytest.fixture
def second_design_request(db, team, team_owner, product):
    return DesignRequest.objects.create(
        team=team,
        requested_by=team_owner,
        product_slug=product.slug,
        product_name='Camiseta Visita',
    )


@pytest.fixture
def owner_client(team_owner):
    return make_client(team_owner)


@pytest.fixture
def manager_client(team_manager):
    return make_client(team_manager)


@pytest.fixture
def player_client(team_player):
    return make_client(team_player)


@pytest.fixture
def outsider_client(outsider):
    return make_client(outsider)


@pytest.fixture
def staff_client(staff_user):
    return make_client(staff_user)


@pytest.fixture
def add_players(db):
    """Factory adding player members to a team."""
    return _add_players
