"""
Product resolution service.

Design requests are often submitted before a matching catalog product
exists, so order creation must never block on missing catalog data.
A product is picked by walking an ordered list of strategies; the first
one that returns a product wins.

Each strategy is a plain function ``(design_request) -> Optional[Product]``
and can be called on its own.
"""

import logging
from typing import Callable, List, Optional, Tuple

from django.db import connection
from django.db.models import Q

from apps.catalog.models import Product, Sport, DesignProduct

from .exceptions import NoProductAvailableError

logger = logging.getLogger(__name__)


def by_selected_product_id(design_request) -> Optional[Product]:
    """Product id embedded in ``selected_apparel.product_id``."""
    selected = design_request.selected_apparel or {}
    if not isinstance(selected, dict):
        return None

    raw_id = selected.get('product_id')
    if raw_id in (None, ''):
        return None

    try:
        product_id = int(raw_id)
    except (TypeError, ValueError):
        return None

    return Product.objects.filter(id=product_id).first()


def by_product_slug(design_request) -> Optional[Product]:
    """Product whose slug equals the request's ``product_slug``."""
    if not design_request.product_slug:
        return None
    return Product.objects.filter(slug=design_request.product_slug).first()


def by_design_association(design_request) -> Optional[Product]:
    """
    Product linked to the request's design, recommended entries first,
    then association insertion order.
    """
    if not design_request.design_id:
        return None

    link = (
        DesignProduct.objects
        .filter(design_id=design_request.design_id)
        .select_related('product')
        .order_by('-is_recommended', 'id')
        .first()
    )
    return link.product if link else None


def by_sport(design_request) -> Optional[Product]:
    """Any product offered for the request's sport."""
    if not design_request.sport_slug:
        return None

    sport = Sport.objects.filter(slug=design_request.sport_slug).first()
    if sport is None:
        return None

    if connection.features.supports_json_field_contains:
        return (
            Product.objects
            .filter(Q(sport_ids__contains=[sport.id]) | Q(sport_ids__contains=[str(sport.id)]))
            .order_by('id')
            .first()
        )

    # Backends without JSON containment (SQLite) get a scan
    for product in Product.objects.order_by('id').iterator():
        if product.is_offered_for(sport.id):
            return product
    return None


def any_product(design_request) -> Optional[Product]:
    """Last resort: the first product in the catalog."""
    return Product.objects.order_by('id').first()


Strategy = Callable[[object], Optional[Product]]

RESOLUTION_CHAIN: List[Tuple[str, Strategy]] = [
    ('selected_product_id', by_selected_product_id),
    ('product_slug', by_product_slug),
    ('design_association', by_design_association),
    ('sport', by_sport),
    ('any_product', any_product),
]


def resolve_product(design_request, chain: Optional[List[Tuple[str, Strategy]]] = None) -> Product:
    """
    Resolve the product used to price an order for a design request.

    Args:
        design_request: DesignRequest (or any object exposing
            selected_apparel, product_slug, design_id and sport_slug)
        chain: Strategy list to evaluate, defaults to RESOLUTION_CHAIN

    Returns:
        The first product any strategy returns

    Raises:
        NoProductAvailableError: If every strategy comes up empty
    """
    for name, strategy in (RESOLUTION_CHAIN if chain is None else chain):
        product = strategy(design_request)
        if product is not None:
            logger.info(
                "Resolved product %s for design request %s via %s",
                product.id, getattr(design_request, 'id', None), name,
            )
            return product

    logger.error("No product available for design request %s", getattr(design_request, 'id', None))
    raise NoProductAvailableError("No product available in the catalog")
