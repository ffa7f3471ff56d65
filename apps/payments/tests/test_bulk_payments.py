import pytest
from datetime import timedelta
from io import StringIO
from types import SimpleNamespace
from unittest.mock import patch
from django.core.management import call_command
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.orders.models import DesignRequest, Order, OrderPaymentStatus, OrderStatus, PaymentMode
from apps.orders.services import approve_design_request, InsufficientPermissionsError, OrderNotFoundError
from apps.payments.models import BulkPayment, BulkPaymentOrder, ContributionStatus
from apps.payments.services import (
    initiate_contribution,
    settle_contribution,
    initiate_bulk_payment,
    settle_bulk_payment,
    settle_bulk_by_external_reference,
    reconcile_bulk_payment,
    get_order_payment_summary,
    mercadopago_client,
    BulkPaymentNotFoundError,
    DuplicateContributionError,
    InvalidAmountError,
    OrderAlreadyPaidError,
    OrderNotPayableError,
    PaymentProcessorError,
)

from .test_mercadopago_client import SECRET, sign


SEARCH_PATH = 'apps.payments.services.mercadopago_client.search_payments'
GET_PAYMENT_PATH = 'apps.payments.services.mercadopago_client.get_payment'


def bulk_url():
    return reverse('payments:bulk-payment')


def pay(order, user, amount):
    """Initiate and approve a member contribution."""
    result = initiate_contribution(order_id=order.id, user=user, amount_clp=amount)
    return settle_contribution(
        contribution_id=result.contribution.id,
        outcome=ContributionStatus.APPROVED,
        payment_id=f'pay-{result.contribution.external_reference}',
    )


def approve_bulk(bulk_payment):
    return settle_bulk_payment(
        bulk_payment_id=bulk_payment.id,
        outcome=ContributionStatus.APPROVED,
        payment_id=f'pay-{bulk_payment.external_reference}',
    )


@pytest.fixture
def second_order(payment_team, captain, kit_product):
    """Another approved 30000 CLP order for the same team."""
    request = DesignRequest.objects.create(team=payment_team, requested_by=captain, product_slug=kit_product.slug)
    order = approve_design_request(
        design_request_id=request.id,
        team_id=payment_team.id,
        user=captain,
    ).order
    order.refresh_from_db()
    return order


def extend(order, captain, kit_product):
    """Add a second design request's items to an existing order."""
    request = DesignRequest.objects.create(team=order.team, requested_by=captain, product_slug=kit_product.slug)
    approve_design_request(
        design_request_id=request.id,
        team_id=order.team_id,
        user=captain,
        order_id=order.id,
    )
    order.refresh_from_db()
    return order


# =============================================================================
# Initiation
# =============================================================================

@pytest.mark.django_db
class TestInitiateBulkPayment:

    def test_covers_outstanding_balance(self, order, captain, mock_preference):
        result = initiate_bulk_payment(order_ids=[order.id], user=captain)

        bulk = BulkPayment.objects.get(id=result.bulk_payment.id)
        assert bulk.status == ContributionStatus.PENDING
        assert bulk.total_amount_clp == 30000
        assert bulk.external_reference == f'bulk_{bulk.id}'
        assert bulk.mp_preference_id == 'pref-123'
        assert list(bulk.orders.all()) == [order]
        assert result.preference_id == 'pref-123'

    def test_charges_only_what_members_left(self, order, captain, winger, mock_preference):
        pay(order, winger, 10000)

        result = initiate_bulk_payment(order_ids=[order.id], user=captain)

        assert result.bulk_payment.total_amount_clp == 20000
        assert BulkPaymentOrder.objects.get(bulk_payment=result.bulk_payment).amount_clp == 20000

    def test_several_orders(self, order, second_order, captain, mock_preference):
        result = initiate_bulk_payment(order_ids=[order.id, second_order.id, order.id], user=captain)

        links = BulkPaymentOrder.objects.filter(bulk_payment=result.bulk_payment)
        assert links.count() == 2
        assert result.bulk_payment.total_amount_clp == 60000

        payload = mock_preference.call_args[0][0]
        assert len(payload['items']) == 2
        assert payload['metadata']['payment_type'] == 'bulk'

    def test_player_cannot_pay_all(self, order, winger, mock_preference):
        with pytest.raises(InsufficientPermissionsError):
            initiate_bulk_payment(order_ids=[order.id], user=winger)

        assert not BulkPayment.objects.exists()
        mock_preference.assert_not_called()

    def test_paid_order(self, order, captain, winger, defender, mock_preference):
        pay(order, captain, 10000)
        pay(order, winger, 10000)
        pay(order, defender, 10000)

        with pytest.raises(OrderAlreadyPaidError):
            initiate_bulk_payment(order_ids=[order.id], user=captain)

    def test_cancelled_order(self, order, captain, mock_preference):
        Order.objects.filter(id=order.id).update(status=OrderStatus.CANCELLED)

        with pytest.raises(OrderNotPayableError):
            initiate_bulk_payment(order_ids=[order.id], user=captain)

    def test_no_orders(self, captain, mock_preference):
        with pytest.raises(InvalidAmountError):
            initiate_bulk_payment(order_ids=[], user=captain)

    def test_unknown_order(self, order, captain, mock_preference):
        with pytest.raises(OrderNotFoundError):
            initiate_bulk_payment(
                order_ids=[order.id, '00000000-0000-0000-0000-000000000000'],
                user=captain,
            )
        assert not BulkPayment.objects.exists()

    def test_processor_failure_leaves_pending(self, order, captain):
        with patch(
            'apps.payments.services.mercadopago_client.create_preference',
            side_effect=PaymentProcessorError('Payment processor unavailable'),
        ):
            with pytest.raises(PaymentProcessorError):
                initiate_bulk_payment(order_ids=[order.id], user=captain)

        bulk = BulkPayment.objects.get()
        assert bulk.status == ContributionStatus.PENDING
        assert bulk.mp_preference_id == ''


# =============================================================================
# Settlement
# =============================================================================

@pytest.mark.django_db
class TestSettleBulkPayment:

    def test_approval_pays_every_order(self, order, second_order, captain, mock_preference):
        bulk = initiate_bulk_payment(order_ids=[order.id, second_order.id], user=captain).bulk_payment

        approve_bulk(bulk)

        for paid_order in (order, second_order):
            paid_order.refresh_from_db()
            assert paid_order.payment_status == OrderPaymentStatus.PAID
            assert paid_order.status == OrderStatus.PAID
            assert paid_order.payment_mode == PaymentMode.MANAGER_PAYS_ALL
            assert paid_order.get_paid_amount() == 30000

    def test_replayed_approval(self, order, captain, mock_preference):
        bulk = initiate_bulk_payment(order_ids=[order.id], user=captain).bulk_payment

        approve_bulk(bulk)
        settled = approve_bulk(bulk)

        assert settled.is_approved
        order.refresh_from_db()
        assert order.get_paid_amount() == 30000

    def test_late_rejection_ignored(self, order, captain, mock_preference):
        bulk = initiate_bulk_payment(order_ids=[order.id], user=captain).bulk_payment
        approve_bulk(bulk)

        settle_bulk_payment(bulk_payment_id=bulk.id, outcome=ContributionStatus.REJECTED)

        bulk.refresh_from_db()
        assert bulk.is_approved

    def test_rejection(self, order, captain, mock_preference):
        bulk = initiate_bulk_payment(order_ids=[order.id], user=captain).bulk_payment

        settle_bulk_payment(bulk_payment_id=bulk.id, outcome=ContributionStatus.REJECTED, payment_id=77)

        bulk.refresh_from_db()
        order.refresh_from_db()
        assert bulk.status == ContributionStatus.REJECTED
        assert bulk.mp_payment_id == '77'
        assert order.payment_status == OrderPaymentStatus.PENDING
        assert order.payment_mode == PaymentMode.INDIVIDUAL

    def test_overpaying_approval_flagged_for_refund(self, order, captain, winger, mock_preference):
        bulk = initiate_bulk_payment(order_ids=[order.id], user=captain).bulk_payment
        # A member paid while the manager was at checkout
        pay(order, winger, 10000)

        settled = approve_bulk(bulk)

        assert settled.status == ContributionStatus.REJECTED
        assert settled.needs_refund is True
        order.refresh_from_db()
        assert order.get_paid_amount() == 10000
        assert order.payment_mode == PaymentMode.INDIVIDUAL

    def test_unknown_bulk_payment(self, db):
        with pytest.raises(BulkPaymentNotFoundError):
            settle_bulk_payment(
                bulk_payment_id='00000000-0000-0000-0000-000000000000',
                outcome=ContributionStatus.APPROVED,
            )

    def test_unknown_outcome(self, order, captain, mock_preference):
        bulk = initiate_bulk_payment(order_ids=[order.id], user=captain).bulk_payment

        with pytest.raises(ValueError):
            settle_bulk_payment(bulk_payment_id=bulk.id, outcome='refunded')

    def test_by_external_reference(self, order, captain, mock_preference):
        bulk = initiate_bulk_payment(order_ids=[order.id], user=captain).bulk_payment

        settle_bulk_by_external_reference(
            external_reference=bulk.external_reference,
            outcome=ContributionStatus.APPROVED,
        )

        bulk.refresh_from_db()
        assert bulk.is_approved

        with pytest.raises(BulkPaymentNotFoundError):
            settle_bulk_by_external_reference(external_reference='bulk_missing', outcome='approved')


# =============================================================================
# Orders reopened after being paid
# =============================================================================

@pytest.mark.django_db
class TestReopenedOrder:

    def test_members_cannot_pay_twice(self, order, captain, winger, defender, kit_product, mock_preference):
        pay(order, captain, 10000)
        pay(order, winger, 10000)
        pay(order, defender, 10000)

        order = extend(order, captain, kit_product)

        assert order.total_amount_clp == 60000
        assert order.payment_status == OrderPaymentStatus.PENDING
        for member in (captain, winger, defender):
            with pytest.raises(DuplicateContributionError):
                initiate_contribution(order_id=order.id, user=member, amount_clp=10000)

    def test_manager_settles_remaining_balance(self, order, captain, winger, defender, kit_product, mock_preference):
        pay(order, captain, 10000)
        pay(order, winger, 10000)
        pay(order, defender, 10000)
        order = extend(order, captain, kit_product)

        bulk = initiate_bulk_payment(order_ids=[order.id], user=captain).bulk_payment
        assert bulk.total_amount_clp == 30000

        approve_bulk(bulk)

        order.refresh_from_db()
        assert order.payment_status == OrderPaymentStatus.PAID
        assert order.get_paid_amount() == 60000
        assert order.get_outstanding_balance() == 0
        assert order.payment_mode == PaymentMode.MANAGER_PAYS_ALL


# =============================================================================
# Summary and reconciliation
# =============================================================================

@pytest.mark.django_db
class TestBulkSummary:

    def test_summary_includes_bulk_amount(self, order, captain, winger, mock_preference):
        pay(order, winger, 10000)
        approve_bulk(initiate_bulk_payment(order_ids=[order.id], user=captain).bulk_payment)

        summary = get_order_payment_summary(order_id=order.id)

        assert summary['paid_amount_clp'] == 30000
        assert summary['bulk_paid_amount_clp'] == 20000
        assert summary['remaining_amount_clp'] == 0
        assert summary['percentage_paid'] == 100.0
        assert summary['payment_mode'] == PaymentMode.MANAGER_PAYS_ALL
        assert summary['approved_count'] == 1


@pytest.mark.django_db
class TestReconcileBulkPayment:

    def test_settles_from_processor(self, order, captain, mock_preference):
        bulk = initiate_bulk_payment(order_ids=[order.id], user=captain).bulk_payment
        payments = [{'id': 9, 'status': 'rejected'}, {'id': 10, 'status': 'approved'}]

        with patch(SEARCH_PATH, return_value=payments) as search:
            settled = reconcile_bulk_payment(bulk_payment=bulk)

        search.assert_called_once_with(external_reference=bulk.external_reference)
        assert settled.is_approved
        assert settled.mp_payment_id == '10'

    def test_nothing_final(self, order, captain, mock_preference):
        bulk = initiate_bulk_payment(order_ids=[order.id], user=captain).bulk_payment

        with patch(SEARCH_PATH, return_value=[{'id': 11, 'status': 'in_process'}]):
            assert reconcile_bulk_payment(bulk_payment=bulk) is None

    def test_command_reconciles_bulk_payments(self, order, captain, mock_preference):
        bulk = initiate_bulk_payment(order_ids=[order.id], user=captain).bulk_payment
        BulkPayment.objects.filter(id=bulk.id).update(created_at=timezone.now() - timedelta(minutes=30))
        out = StringIO()

        with patch(SEARCH_PATH, return_value=[{'id': 12, 'status': 'approved'}]):
            call_command('reconcile_contributions', stdout=out)

        assert BulkPayment.objects.get(id=bulk.id).is_approved
        assert 'Found 1 pending bulk payment(s)' in out.getvalue()
        assert '1 bulk payment(s)' in out.getvalue()


# =============================================================================
# Preference payload
# =============================================================================

class TestBuildBulkPreference:

    def test_one_item_per_order(self, settings):
        settings.SITE_URL = 'https://teamkit.example.com'
        first = SimpleNamespace(id='0b7c1d7e-3a51-4a0e-9f3e-0d3c6a1f2b44')
        second = SimpleNamespace(id='9f00aa11-3a51-4a0e-9f3e-0d3c6a1f2b44')
        bulk = SimpleNamespace(id='1234abcd-0000-4000-8000-000000000000', external_reference='bulk_1234abcd')
        user = SimpleNamespace(id='5d7e0a7c-1111-4222-8333-944455556666', email='captain@example.com', full_name='Captain')

        payload = mercadopago_client.build_bulk_preference(
            bulk_payment=bulk,
            user=user,
            allocations=[(first, 30000), (second, 5000)],
        )

        assert [item['unit_price'] for item in payload['items']] == [30000, 5000]
        assert payload['items'][0]['title'] == 'Team order #0b7c1d7e'
        assert payload['external_reference'] == 'bulk_1234abcd'
        assert payload['metadata'] == {
            'bulk_payment_id': '1234abcd-0000-4000-8000-000000000000',
            'user_id': '5d7e0a7c-1111-4222-8333-944455556666',
            'order_ids': [first.id, second.id],
            'payment_type': 'bulk',
        }
        assert payload['auto_return'] == 'approved'


# =============================================================================
# API
# =============================================================================

@pytest.fixture
def webhook_secret(settings):
    settings.MERCADOPAGO_WEBHOOK_SECRET = SECRET


@pytest.mark.django_db
class TestBulkPaymentApi:
    """Tests for POST /api/payments/bulk/"""

    def test_manager_starts_bulk_payment(self, captain_client, order, mock_preference):
        response = captain_client.post(bulk_url(), {'orderIds': [str(order.id)]}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['success'] is True
        assert response.data['preferenceId'] == 'pref-123'
        assert response.data['totalAmountClp'] == 30000
        assert response.data['orderCount'] == 1
        assert BulkPayment.objects.filter(id=response.data['bulkPaymentId']).exists()

    def test_player_forbidden(self, winger_client, order, mock_preference):
        response = winger_client.post(bulk_url(), {'orderIds': [str(order.id)]}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'insufficient_permissions'

    def test_empty_order_list(self, captain_client, order):
        response = captain_client.post(bulk_url(), {'orderIds': []}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'validation_error'

    def test_unknown_order(self, captain_client, mock_preference):
        response = captain_client.post(
            bulk_url(),
            {'orderIds': ['00000000-0000-0000-0000-000000000000']},
            format='json',
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_webhook_settles_bulk_payment(self, api_client, webhook_secret, order, captain, mock_preference):
        bulk = initiate_bulk_payment(order_ids=[order.id], user=captain).bulk_payment
        payment = {
            'id': 700,
            'status': 'approved',
            'external_reference': bulk.external_reference,
            'metadata': {'payment_type': 'bulk'},
        }

        with patch(GET_PAYMENT_PATH, return_value=payment):
            response = api_client.post(
                reverse('payments:mercadopago-webhook'),
                {'type': 'payment', 'data': {'id': '700'}},
                format='json',
                HTTP_X_SIGNATURE=sign('700', 'req-1'),
                HTTP_X_REQUEST_ID='req-1',
            )

        assert response.status_code == status.HTTP_200_OK
        bulk.refresh_from_db()
        order.refresh_from_db()
        assert bulk.is_approved
        assert bulk.mp_payment_id == '700'
        assert order.payment_status == OrderPaymentStatus.PAID

    def test_webhook_unknown_bulk_acknowledged(self, api_client, webhook_secret, db):
        payment = {'id': 701, 'status': 'approved', 'external_reference': 'bulk_missing'}

        with patch(GET_PAYMENT_PATH, return_value=payment):
            response = api_client.post(
                reverse('payments:mercadopago-webhook'),
                {'type': 'payment', 'data': {'id': '701'}},
                format='json',
                HTTP_X_SIGNATURE=sign('701', 'req-1'),
                HTTP_X_REQUEST_ID='req-1',
            )

        assert response.status_code == status.HTTP_200_OK
