import logging

from django.core.exceptions import ValidationError
from django.db.models import Q
from rest_framework import viewsets, status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from .models import PaymentContribution
from .permissions import CanViewContribution
from .serializers import (
    SplitPaymentInputSerializer,
    BulkPaymentInputSerializer,
    ContributionFilterSerializer,
    PaymentContributionSerializer,
    SplitPaymentResponseSerializer,
    BulkPaymentResponseSerializer,
)

from apps.accounts.models import User
from apps.orders.models import Order
from apps.orders.serializers import ErrorResponseSerializer
from apps.orders.services import OrderNotFoundError, InsufficientPermissionsError
from apps.teams.services import TeamNotFoundError, NotTeamMemberError
from apps.payments.services import (
    initiate_contribution,
    initiate_bulk_payment,
    settle_by_external_reference,
    settle_bulk_by_external_reference,
    # Exceptions
    PaymentsServiceError,
    ContributionNotFoundError,
    BulkPaymentNotFoundError,
    UserNotFoundError,
    PaymentProcessorError,
    InvalidSignatureError,
)
from apps.payments.services import mercadopago_client

logger = logging.getLogger(__name__)


NOT_FOUND_ERRORS = (
    OrderNotFoundError, ContributionNotFoundError, BulkPaymentNotFoundError, UserNotFoundError, TeamNotFoundError
)
FORBIDDEN_ERRORS = (InsufficientPermissionsError, NotTeamMemberError)
SERVICE_ERRORS = (PaymentsServiceError, OrderNotFoundError, InsufficientPermissionsError, NotTeamMemberError)


def service_error_response(exc):
    """Translate a service exception into an error response."""
    if isinstance(exc, NOT_FOUND_ERRORS):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, FORBIDDEN_ERRORS):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, InvalidSignatureError):
        status_code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(exc, PaymentProcessorError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return Response({'error': str(exc), 'code': exc.code}, status=status_code)


def _get_contributor(user_id, caller):
    """
    Resolve the contributing user.

    Members pay their own share; team managers may start a payment for
    another member of their team.
    """
    if user_id == caller.id:
        return caller

    try:
        return User.objects.get(id=user_id, is_active=True)
    except User.DoesNotExist:
        raise UserNotFoundError(f"User {user_id} not found")


def _check_can_pay_for(contributor, caller, order_id):
    if contributor.id == caller.id:
        return

    order = Order.objects.select_related('team').filter(id=order_id).first()
    if order is None:
        raise OrderNotFoundError(f"Order {order_id} not found")
    if not order.team.is_manager(caller):
        raise InsufficientPermissionsError(
            "Only team managers can start a payment for another member"
        )


class ContributionPagination(PageNumberPagination):
    """Custom pagination for contributions."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class PaymentContributionViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Contributions visible to the user: their own and those of their teams.

    list: Get contributions (filterable by order/status)
    retrieve: Get a specific contribution
    """

    serializer_class = PaymentContributionSerializer
    permission_classes = [IsAuthenticated, CanViewContribution]
    pagination_class = ContributionPagination

    def get_queryset(self):
        user = self.request.user
        queryset = PaymentContribution.objects.select_related('user', 'order__team').filter(
            Q(user=user) | Q(order__team__memberships__user=user)
        ).distinct()

        filter_serializer = ContributionFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if params.get('order'):
            queryset = queryset.filter(order_id=params['order'])
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        return queryset


@extend_schema(
    request=SplitPaymentInputSerializer,
    responses={201: SplitPaymentResponseSerializer, 400: ErrorResponseSerializer, 403: ErrorResponseSerializer, 404: ErrorResponseSerializer, 500: ErrorResponseSerializer},
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def split_payment(request):
    """
    Start a member's contribution to a team order.

    POST /api/payments/split/
    Body: {"orderId": "<uuid>", "userId": "<uuid>", "amountClp": 10000}
    """
    serializer = SplitPaymentInputSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(
            {'error': 'Invalid request', 'details': serializer.errors, 'code': 'validation_error'},
            status=status.HTTP_400_BAD_REQUEST
        )

    data = serializer.validated_data
    try:
        contributor = _get_contributor(data['userId'], request.user)
        _check_can_pay_for(contributor, request.user, data['orderId'])
        result = initiate_contribution(
            order_id=data['orderId'],
            user=contributor,
            amount_clp=data['amountClp'],
        )
    except SERVICE_ERRORS as e:
        logger.warning("Split payment for order %s failed: %s", data['orderId'], e)
        return service_error_response(e)

    return Response({
        'success': True,
        'contributionId': str(result.contribution.id),
        'preferenceId': result.preference_id,
        'initPoint': result.init_point,
        'sandboxInitPoint': result.sandbox_init_point,
    }, status=status.HTTP_201_CREATED)


@extend_schema(
    request=BulkPaymentInputSerializer,
    responses={201: BulkPaymentResponseSerializer, 400: ErrorResponseSerializer, 403: ErrorResponseSerializer, 404: ErrorResponseSerializer, 500: ErrorResponseSerializer},
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def bulk_payment(request):
    """
    Pay the remaining balance of one or more team orders as a manager.

    POST /api/payments/bulk/
    Body: {"orderIds": ["<uuid>", ...]}
    """
    serializer = BulkPaymentInputSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(
            {'error': 'Invalid request', 'details': serializer.errors, 'code': 'validation_error'},
            status=status.HTTP_400_BAD_REQUEST
        )

    order_ids = serializer.validated_data['orderIds']
    try:
        result = initiate_bulk_payment(order_ids=order_ids, user=request.user)
    except SERVICE_ERRORS as e:
        logger.warning("Bulk payment for %d order(s) failed: %s", len(order_ids), e)
        return service_error_response(e)

    return Response({
        'success': True,
        'bulkPaymentId': str(result.bulk_payment.id),
        'preferenceId': result.preference_id,
        'initPoint': result.init_point,
        'sandboxInitPoint': result.sandbox_init_point,
        'totalAmountClp': result.bulk_payment.total_amount_clp,
        'orderCount': result.bulk_payment.order_links.count(),
    }, status=status.HTTP_201_CREATED)


@extend_schema(request=None, responses={200: None, 401: ErrorResponseSerializer})
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def mercadopago_webhook(request):
    """
    Mercado Pago payment notification.

    POST /api/payments/webhook/
    Validates the x-signature header, fetches the payment and settles
    the split contribution or bulk payment carrying its external reference.
    """
    body = request.data if isinstance(request.data, dict) else {}
    data = body.get('data') or {}
    data_id = str(data.get('id') or request.query_params.get('data.id') or '')

    if not mercadopago_client.validate_webhook_signature(
        request.headers.get('x-signature'),
        request.headers.get('x-request-id'),
        data_id,
    ):
        return service_error_response(InvalidSignatureError("Invalid signature"))

    notification_type = body.get('type') or request.query_params.get('type')
    if notification_type != 'payment':
        logger.info("Ignoring %s notification", notification_type)
        return Response({'received': True})

    if not data_id:
        return Response(
            {'error': 'Missing payment ID', 'code': 'validation_error'},
            status=status.HTTP_400_BAD_REQUEST
        )

    try:
        payment = mercadopago_client.get_payment(data_id)
    except PaymentProcessorError as e:
        return service_error_response(e)

    external_reference = payment.get('external_reference') or ''
    payment_type = (payment.get('metadata') or {}).get('payment_type')
    is_bulk = payment_type == 'bulk' or external_reference.startswith('bulk_')
    is_split = payment_type == 'split' or external_reference.startswith('split_')
    if not (is_bulk or is_split):
        logger.warning("Payment %s is not a team payment (%s), ignoring", data_id, payment_type)
        return Response({'received': True})

    outcome = mercadopago_client.outcome_for_status(payment.get('status'))
    if outcome is None:
        logger.info("Payment %s still %s", data_id, payment.get('status'))
        return Response({'received': True})

    settle_kwargs = {
        'external_reference': external_reference,
        'outcome': outcome,
        'payment_id': payment.get('id'),
        'raw_payment_data': payment,
    }
    if is_bulk:
        try:
            settle_bulk_by_external_reference(**settle_kwargs)
        except BulkPaymentNotFoundError:
            logger.warning("No bulk payment for payment %s (%s)", data_id, external_reference)
    else:
        try:
            settle_by_external_reference(**settle_kwargs)
        except ContributionNotFoundError:
            logger.warning("No contribution for payment %s (%s)", data_id, external_reference)

    return Response({'received': True})
