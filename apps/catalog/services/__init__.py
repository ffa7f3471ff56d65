"""
Catalog app services layer.
"""

from .exceptions import (
    CatalogServiceError,
    NoProductAvailableError,
)

from .product_resolution import (
    RESOLUTION_CHAIN,
    resolve_product,
    by_selected_product_id,
    by_product_slug,
    by_design_association,
    by_sport,
    any_product,
)


__all__ = [
    # Exceptions
    'CatalogServiceError',
    'NoProductAvailableError',

    # Product resolution
    'RESOLUTION_CHAIN',
    'resolve_product',
    'by_selected_product_id',
    'by_product_slug',
    'by_design_association',
    'by_sport',
    'any_product',
]
