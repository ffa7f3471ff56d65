"""
Domain-specific exceptions for orders app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class OrdersServiceError(Exception):
    """Base exception for all orders service errors."""
    code = 'orders_error'


class DesignRequestNotFoundError(OrdersServiceError):
    """Raised when a design request does not exist in the given team."""
    code = 'design_request_not_found'


class OrderNotFoundError(OrdersServiceError):
    """Raised when an order does not exist or belongs to another team."""
    code = 'order_not_found'


class InsufficientPermissionsError(OrdersServiceError):
    """Raised when the caller's role does not allow the action."""
    code = 'insufficient_permissions'


class AlreadyApprovedError(OrdersServiceError):
    """Raised when a design request has already been approved."""
    code = 'already_approved'


class DesignRequestCancelledError(OrdersServiceError):
    """Raised when approving a design request that was rejected."""
    code = 'design_request_cancelled'


class EmptyRosterError(OrdersServiceError):
    """Raised when a team has no members to create order items for."""
    code = 'empty_roster'


class OrderLockedError(OrdersServiceError):
    """Raised when an order no longer accepts new items."""
    code = 'order_locked'


class InvalidStageTransitionError(OrdersServiceError):
    """Raised when a production stage change is not a forward move on a paid order."""
    code = 'invalid_stage_transition'


class DependencyFailureError(OrdersServiceError):
    """Raised when a dependent write fails and the operation was undone."""
    code = 'dependency_failure'
