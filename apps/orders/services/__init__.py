"""
Orders app services layer.

Services contain business logic and orchestrate operations across models.
"""

from .exceptions import (
    OrdersServiceError,
    DesignRequestNotFoundError,
    OrderNotFoundError,
    InsufficientPermissionsError,
    AlreadyApprovedError,
    DesignRequestCancelledError,
    EmptyRosterError,
    OrderLockedError,
    InvalidStageTransitionError,
    DependencyFailureError,
)

from .order_assembly import (
    OrderCreated,
    OrderExtended,
    approve_design_request,
    reject_design_request,
    recompute_order_totals,
)

from .production_tracking import (
    ProgressFacts,
    TeamProgress,
    compute_progress,
    gather_progress_facts,
    get_team_progress,
)

from .fulfillment import (
    advance_production_stage,
)


__all__ = [
    # Exceptions
    'OrdersServiceError',
    'DesignRequestNotFoundError',
    'OrderNotFoundError',
    'InsufficientPermissionsError',
    'AlreadyApprovedError',
    'DesignRequestCancelledError',
    'EmptyRosterError',
    'OrderLockedError',
    'InvalidStageTransitionError',
    'DependencyFailureError',

    # Order assembly
    'OrderCreated',
    'OrderExtended',
    'approve_design_request',
    'reject_design_request',
    'recompute_order_totals',

    # Production tracking
    'ProgressFacts',
    'TeamProgress',
    'compute_progress',
    'gather_progress_facts',
    'get_team_progress',

    # Fulfillment
    'advance_production_stage',
]
