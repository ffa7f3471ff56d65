import pytest
from django.urls import reverse
from rest_framework import status

from apps.orders.models import DesignRequest, Order, OrderPaymentStatus, OrderStatus
from apps.orders.services import approve_design_request


def approve_url(design_request):
    return reverse('orders:design-request-approve', kwargs={'pk': design_request.id})


# =============================================================================
# Approval
# =============================================================================

@pytest.mark.django_db
class TestApproveDesignRequest:
    """Tests for POST /api/design-requests/{id}/approve/"""

    def test_approve_creates_order(self, owner_client, team_with_members, design_request):
        response = owner_client.post(
            approve_url(design_request),
            {'team_id': str(team_with_members.id)},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] is True
        assert response.data['action'] == 'created'
        assert response.data['order']['total_amount_clp'] == 30000
        assert response.data['order']['status'] == 'pending'
        assert response.data['order']['payment_status'] == 'pending'
        assert response.data['design_request'] == {
            'id': design_request.id,
            'status': 'ready',
            'approval_status': 'approved',
            'order_id': response.data['order']['id'],
        }

    def test_approve_into_existing_order(self, owner_client, team_with_members, design_request, second_design_request, team_owner):
        first = approve_design_request(
            design_request_id=design_request.id,
            team_id=team_with_members.id,
            user=team_owner,
        )

        response = owner_client.post(
            approve_url(second_design_request),
            {'team_id': str(team_with_members.id), 'order_id': str(first.order.id)},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['action'] == 'extended'
        assert response.data['order']['id'] == str(first.order.id)
        assert response.data['order']['total_amount_clp'] == 60000

    def test_missing_team_id(self, owner_client, design_request):
        response = owner_client.post(approve_url(design_request), {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'validation_error'
        assert 'team_id' in response.data['details']

    def test_player_forbidden(self, player_client, team_with_members, design_request):
        response = player_client.post(
            approve_url(design_request),
            {'team_id': str(team_with_members.id)},
            format='json',
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'insufficient_permissions'
        assert Order.objects.count() == 0

    def test_unknown_design_request(self, owner_client, team):
        url = reverse('orders:design-request-approve', kwargs={'pk': 999999})
        response = owner_client.post(url, {'team_id': str(team.id)}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'design_request_not_found'

    def test_second_approval(self, owner_client, team_with_members, design_request):
        owner_client.post(approve_url(design_request), {'team_id': str(team_with_members.id)}, format='json')
        response = owner_client.post(approve_url(design_request), {'team_id': str(team_with_members.id)}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'already_approved'
        assert Order.objects.count() == 1

    def test_rejected_request(self, owner_client, team_with_members, design_request):
        owner_client.post(
            reverse('orders:design-request-reject', kwargs={'pk': design_request.id}),
            {'team_id': str(team_with_members.id)},
            format='json',
        )
        response = owner_client.post(approve_url(design_request), {'team_id': str(team_with_members.id)}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'design_request_cancelled'
        assert not Order.objects.exists()

    def test_empty_catalog(self, owner_client, team, team_owner):
        request = DesignRequest.objects.create(team=team, requested_by=team_owner)
        response = owner_client.post(approve_url(request), {'team_id': str(team.id)}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'no_product_available'

    def test_unauthenticated(self, api_client, design_request):
        response = api_client.post(approve_url(design_request), {'team_id': str(design_request.team_id)}, format='json')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestRejectDesignRequest:
    """Tests for POST /api/design-requests/{id}/reject/"""

    def test_reject(self, manager_client, team_with_members, design_request):
        url = reverse('orders:design-request-reject', kwargs={'pk': design_request.id})
        response = manager_client.post(
            url,
            {'team_id': str(team_with_members.id), 'reason': 'Too dark'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'cancelled'
        assert response.data['rejection_reason'] == 'Too dark'


@pytest.mark.django_db
class TestDesignRequestList:
    """Tests for GET /api/design-requests/"""

    def test_member_sees_team_requests(self, player_client, team_with_members, design_request):
        response = player_client.get(reverse('orders:design-request-list'))

        assert response.status_code == status.HTTP_200_OK
        ids = [r['id'] for r in response.data['results']]
        assert design_request.id in ids

    def test_outsider_sees_nothing(self, outsider_client, design_request):
        response = outsider_client.get(reverse('orders:design-request-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['results'] == []

    def test_filter_by_approval_status(self, owner_client, team_with_members, design_request, second_design_request, team_owner):
        approve_design_request(design_request_id=design_request.id, team_id=team_with_members.id, user=team_owner)

        response = owner_client.get(reverse('orders:design-request-list'), {'approval_status': 'approved'})

        ids = [r['id'] for r in response.data['results']]
        assert ids == [design_request.id]

    def test_retrieve_forbidden_for_outsider(self, outsider_client, design_request):
        url = reverse('orders:design-request-detail', kwargs={'pk': design_request.id})
        response = outsider_client.get(url)
        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Orders
# =============================================================================

@pytest.fixture
def approved_order(team_with_members, design_request, team_owner):
    return approve_design_request(
        design_request_id=design_request.id,
        team_id=team_with_members.id,
        user=team_owner,
    ).order


@pytest.mark.django_db
class TestOrderEndpoints:

    def test_list(self, player_client, approved_order):
        response = player_client.get(reverse('orders:order-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['results'][0]['id'] == str(approved_order.id)
        assert response.data['results'][0]['item_count'] == 3

    def test_detail_includes_items(self, player_client, approved_order):
        response = player_client.get(reverse('orders:order-detail', kwargs={'pk': approved_order.id}))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['items']) == 3
        assert response.data['items'][0]['line_total_clp'] == 10000

    def test_outsider_cannot_see_order(self, outsider_client, approved_order):
        response = outsider_client.get(reverse('orders:order-detail', kwargs={'pk': approved_order.id}))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_payment_summary(self, player_client, approved_order):
        url = reverse('orders:order-payment-summary', kwargs={'pk': approved_order.id})
        response = player_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_amount_clp'] == 30000
        assert response.data['paid_amount_clp'] == 0
        assert response.data['remaining_amount_clp'] == 30000
        assert response.data['payment_status'] == 'pending'
        assert response.data['payment_mode'] == 'individual'
        assert response.data['bulk_paid_amount_clp'] == 0

    def test_advance_stage_staff(self, staff_client, approved_order):
        Order.objects.filter(id=approved_order.id).update(
            payment_status=OrderPaymentStatus.PAID,
            status=OrderStatus.PAID,
        )
        url = reverse('orders:order-advance-stage', kwargs={'pk': approved_order.id})

        response = staff_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['current_stage'] == 'printing'
        assert response.data['status'] == 'processing'

    def test_advance_stage_unpaid(self, staff_client, approved_order):
        url = reverse('orders:order-advance-stage', kwargs={'pk': approved_order.id})
        response = staff_client.post(url, {'stage': 'printing'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'invalid_stage_transition'

    def test_advance_stage_requires_staff(self, owner_client, approved_order):
        url = reverse('orders:order-advance-stage', kwargs={'pk': approved_order.id})
        response = owner_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
