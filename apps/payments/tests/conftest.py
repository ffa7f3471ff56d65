import pytest
from unittest.mock import patch
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.catalog.models import Product
from apps.orders.models import DesignRequest
from apps.orders.services import approve_design_request
from apps.teams.models import Team, TeamMembership, TeamRole


def make_client(user):
    """Return an API client authenticated as the given user."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def captain(db):
    return User.objects.create_user(email='captain@example.com', password='TestPass123!', full_name='Captain')


@pytest.fixture
def winger(db):
    return User.objects.create_user(email='winger@example.com', password='TestPass123!', full_name='Winger')


@pytest.fixture
def defender(db):
    return User.objects.create_user(email='defender@example.com', password='TestPass123!', full_name='Defender')


@pytest.fixture
def payment_outsider(db):
    return User.objects.create_user(email='nobody@example.com', password='TestPass123!')


@pytest.fixture
def payment_team(db, captain, winger, defender):
    """Team of 3: captain (owner), winger and defender."""
    team = Team.objects.create(name='Deportes Unidos', slug='deportes-unidos', owner=captain)
    TeamMembership.objects.create(user=captain, team=team, role=TeamRole.OWNER)
    TeamMembership.objects.create(user=winger, team=team, role=TeamRole.PLAYER)
    TeamMembership.objects.create(user=defender, team=team, role=TeamRole.PLAYER)
    return team


@pytest.fixture
def kit_product(db):
    return Product.objects.create(name='Camiseta', slug='camiseta', price_clp=10000)


@pytest.fixture
def order(payment_team, captain, kit_product):
    """Approved order: 3 members x 10000 = 30000 CLP."""
    request = DesignRequest.objects.create(team=payment_team, requested_by=captain, product_slug=kit_product.slug)
    order = approve_design_request(
        design_request_id=request.id,
        team_id=payment_team.id,
        user=captain,
    ).order
    order.refresh_from_db()
    return order


@pytest.fixture
def mock_preference():
    """Patch Mercado Pago preference creation."""
    with patch('apps.payments.services.mercadopago_client.create_preference') as mocked:
        mocked.return_value = {
            'id': 'pref-123',
            'init_point': 'https://www.mercadopago.cl/checkout/v1/redirect?pref_id=pref-123',
            'sandbox_init_point': 'https://sandbox.mercadopago.cl/checkout/v1/redirect?pref_id=pref-123',
        }
        yield mocked


@pytest.fixture
def captain_client(captain):
    return make_client(captain)


@pytest.fixture
def winger_client(winger):
    return make_client(winger)


@pytest.fixture
def outsider_payment_client(payment_outsider):
    return make_client(payment_outsider)
