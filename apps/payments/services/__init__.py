"""
Payments app services layer.

Services contain business logic and orchestrate operations across models.
"""

from .exceptions import (
    PaymentsServiceError,
    ContributionNotFoundError,
    BulkPaymentNotFoundError,
    UserNotFoundError,
    InvalidAmountError,
    DuplicateContributionError,
    OrderAlreadyPaidError,
    OrderNotPayableError,
    PaymentProcessorError,
    InvalidSignatureError,
)

from .contribution_ledger import (
    ContributionInitiated,
    build_external_reference,
    initiate_contribution,
    settle_contribution,
    settle_by_external_reference,
    reconcile_contribution,
    BulkPaymentInitiated,
    build_bulk_reference,
    initiate_bulk_payment,
    settle_bulk_payment,
    settle_bulk_by_external_reference,
    reconcile_bulk_payment,
    get_order_payment_summary,
)


__all__ = [
    # Exceptions
    'PaymentsServiceError',
    'ContributionNotFoundError',
    'BulkPaymentNotFoundError',
    'UserNotFoundError',
    'InvalidAmountError',
    'DuplicateContributionError',
    'OrderAlreadyPaidError',
    'OrderNotPayableError',
    'PaymentProcessorError',
    'InvalidSignatureError',

    # Contribution ledger
    'ContributionInitiated',
    'build_external_reference',
    'initiate_contribution',
    'settle_contribution',
    'settle_by_external_reference',
    'reconcile_contribution',
    'BulkPaymentInitiated',
    'build_bulk_reference',
    'initiate_bulk_payment',
    'settle_bulk_payment',
    'settle_bulk_by_external_reference',
    'reconcile_bulk_payment',
    'get_order_payment_summary',
]
