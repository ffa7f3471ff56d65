"""
Mercado Pago client.

Thin wrapper over the official SDK. Amounts are whole Chilean pesos,
which is also the unit Mercado Pago expects for CLP.
"""

import hashlib
import hmac
import logging

import mercadopago
from django.conf import settings

from .exceptions import PaymentProcessorError

logger = logging.getLogger(__name__)


# Processor payment status -> contribution outcome
APPROVED_STATUSES = ('approved',)
REJECTED_STATUSES = ('rejected', 'cancelled', 'refunded', 'charged_back')


def get_sdk():
    return mercadopago.SDK(settings.MERCADOPAGO_ACCESS_TOKEN)


def _is_local(url):
    return 'localhost' in url or '127.0.0.1' in url


def _preference_payload(*, items, user, external_reference, metadata):
    site_url = settings.SITE_URL.rstrip('/')

    payload = {
        'items': items,
        'payer': {
            'email': user.email,
            'name': user.full_name or None,
        },
        'external_reference': external_reference,
        'back_urls': {
            'success': f"{site_url}/payment/success",
            'failure': f"{site_url}/payment/failure",
            'pending': f"{site_url}/payment/pending",
        },
        'notification_url': f"{site_url}/api/payments/webhook/",
        'metadata': metadata,
    }

    # Mercado Pago refuses auto_return with localhost back URLs
    if not _is_local(site_url):
        payload['auto_return'] = 'approved'

    return payload


def build_split_preference(*, order, user, amount_clp, external_reference):
    """Preference payload for one member's share of an order."""
    return _preference_payload(
        items=[
            {
                'title': f"Team order #{str(order.id)[:8]} - your share",
                'quantity': 1,
                'unit_price': amount_clp,
                'currency_id': settings.PAYMENT_CURRENCY,
                'description': f"Individual contribution for order #{order.id}",
            }
        ],
        user=user,
        external_reference=external_reference,
        metadata={
            'order_id': str(order.id),
            'user_id': str(user.id),
            'payment_type': 'split',
        },
    )


def build_bulk_preference(*, bulk_payment, user, allocations):
    """Preference payload for a manager paying several orders, one item per order."""
    return _preference_payload(
        items=[
            {
                'title': f"Team order #{str(order.id)[:8]}",
                'quantity': 1,
                'unit_price': amount_clp,
                'currency_id': settings.PAYMENT_CURRENCY,
                'description': f"Remaining balance for order #{order.id}",
            }
            for order, amount_clp in allocations
        ],
        user=user,
        external_reference=bulk_payment.external_reference,
        metadata={
            'bulk_payment_id': str(bulk_payment.id),
            'user_id': str(user.id),
            'order_ids': [str(order.id) for order, _ in allocations],
            'payment_type': 'bulk',
        },
    )


def create_preference(payload):
    """
    Create a checkout preference.

    Returns:
        dict with id, init_point and sandbox_init_point

    Raises:
        PaymentProcessorError: If the SDK call fails or is refused
    """
    try:
        result = get_sdk().preference().create(payload)
    except Exception as e:
        logger.exception("Mercado Pago preference request failed")
        raise PaymentProcessorError("Payment processor unavailable") from e

    response = result.get('response') or {}
    if result.get('status') not in (200, 201) or not response.get('id'):
        logger.error(
            "Mercado Pago refused preference (status %s): %s",
            result.get('status'), response,
        )
        raise PaymentProcessorError("Payment processor refused the preference")

    return {
        'id': response['id'],
        'init_point': response.get('init_point'),
        'sandbox_init_point': response.get('sandbox_init_point') or response.get('init_point'),
    }


def get_payment(payment_id):
    """
    Fetch payment details by id.

    Raises:
        PaymentProcessorError: If the payment cannot be fetched
    """
    try:
        result = get_sdk().payment().get(payment_id)
    except Exception as e:
        logger.exception("Mercado Pago payment lookup failed for %s", payment_id)
        raise PaymentProcessorError("Payment processor unavailable") from e

    if result.get('status') != 200:
        logger.error("Mercado Pago payment %s lookup returned %s", payment_id, result.get('status'))
        raise PaymentProcessorError(f"Could not fetch payment {payment_id}")
    return result['response']


def search_payments(*, external_reference):
    """
    List processor payments carrying an external reference, newest first.

    Raises:
        PaymentProcessorError: If the search fails
    """
    filters = {
        'external_reference': external_reference,
        'sort': 'date_created',
        'criteria': 'desc',
    }
    try:
        result = get_sdk().payment().search(filters=filters)
    except Exception as e:
        logger.exception("Mercado Pago payment search failed for %s", external_reference)
        raise PaymentProcessorError("Payment processor unavailable") from e

    if result.get('status') != 200:
        raise PaymentProcessorError(f"Could not search payments for {external_reference}")
    return (result.get('response') or {}).get('results', [])


def outcome_for_status(payment_status):
    """Map a processor payment status to a contribution outcome, or None while pending."""
    if payment_status in APPROVED_STATUSES:
        return 'approved'
    if payment_status in REJECTED_STATUSES:
        return 'rejected'
    return None


def validate_webhook_signature(x_signature, x_request_id, data_id):
    """
    Check the ``x-signature`` header of a webhook notification.

    The header looks like ``ts=<timestamp>,v1=<hmac>``; the HMAC-SHA256
    is computed over ``id:<data_id>;request-id:<x_request_id>;ts:<ts>;``
    with the webhook secret.
    """
    secret = settings.MERCADOPAGO_WEBHOOK_SECRET
    if not secret or not x_signature or not x_request_id:
        logger.warning("Webhook signature validation parameters missing")
        return False

    parts = {}
    for part in x_signature.split(','):
        key, _, value = part.strip().partition('=')
        parts[key] = value

    timestamp = parts.get('ts')
    provided = parts.get('v1')
    if not timestamp or not provided:
        logger.warning("Webhook signature has invalid format")
        return False

    message = f"id:{data_id};request-id:{x_request_id};ts:{timestamp};"
    expected = hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()

    if not hmac.compare_digest(expected, provided):
        logger.warning("Webhook signature mismatch for data id %s", data_id)
        return False
    return True
