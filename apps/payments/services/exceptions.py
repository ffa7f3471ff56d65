"""
Domain-specific exceptions for payments app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class PaymentsServiceError(Exception):
    """Base exception for all payments service errors."""
    code = 'payments_error'


class ContributionNotFoundError(PaymentsServiceError):
    """Raised when a payment contribution does not exist."""
    code = 'contribution_not_found'


class UserNotFoundError(PaymentsServiceError):
    """Raised when the contributing user does not exist."""
    code = 'user_not_found'


class InvalidAmountError(PaymentsServiceError):
    """Raised when an amount is not positive or exceeds the outstanding balance."""
    code = 'invalid_amount'


class DuplicateContributionError(PaymentsServiceError):
    """Raised when the user already has an approved contribution for the order."""
    code = 'duplicate_contribution'


class OrderAlreadyPaidError(PaymentsServiceError):
    """Raised when paying towards an order that is already fully paid."""
    code = 'order_already_paid'


class OrderNotPayableError(PaymentsServiceError):
    """Raised when the order cannot take payments (cancelled)."""
    code = 'order_not_payable'


class PaymentProcessorError(PaymentsServiceError):
    """Raised when Mercado Pago rejects or fails a request."""
    code = 'payment_processor_error'


class InvalidSignatureError(PaymentsServiceError):
    """Raised when a webhook notification fails signature validation."""
    code = 'invalid_signature'


class BulkPaymentNotFoundError(PaymentsServiceError):
    """Raised when a bulk payment does not exist."""
    code = 'bulk_payment_not_found'
