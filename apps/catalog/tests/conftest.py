import pytest
from apps.catalog.models import Sport, Product, Design, DesignProduct


@pytest.fixture
def futbol(db):
    """Create and return a sport."""
    return Sport.objects.create(name='Fútbol', slug='futbol')


@pytest.fixture
def basketball(db):
    """Create and return another sport."""
    return Sport.objects.create(name='Basketball', slug='basketball')


@pytest.fixture
def jersey(db, futbol):
    """Soccer jersey, sport id stored as integer."""
    return Product.objects.create(
        name='Camiseta Pro',
        slug='camiseta-pro',
        category='jersey',
        price_clp=25000,
        sport_ids=[futbol.id],
    )


@pytest.fixture
def shorts(db, futbol):
    """Soccer shorts, sport id stored as string."""
    return Product.objects.create(
        name='Short Pro',
        slug='short-pro',
        category='shorts',
        price_clp=15000,
        sport_ids=[str(futbol.id)],
    )


@pytest.fixture
def socks(db):
    """Product not offered for any sport."""
    return Product.objects.create(
        name='Medias',
        slug='medias',
        category='socks',
        price_clp=5000,
        sport_ids=[],
    )


@pytest.fixture
def design(db, futbol):
    """Create and return a design template."""
    return Design.objects.create(name='Rayas', slug='rayas', sport=futbol)
