"""
Domain-specific exceptions for catalog app.
"""


class CatalogServiceError(Exception):
    """Base exception for all catalog service errors."""
    code = 'catalog_error'


class NoProductAvailableError(CatalogServiceError):
    """Raised when the catalog has no product at all to price an order."""
    code = 'no_product_available'
