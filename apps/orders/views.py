import logging

from django.db.models import Q
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from .models import DesignRequest, Order
from .permissions import IsOrderTeamMember
from .serializers import (
    ApproveDesignRequestInputSerializer,
    RejectDesignRequestInputSerializer,
    DesignRequestFilterSerializer,
    OrderFilterSerializer,
    AdvanceStageInputSerializer,
    DesignRequestSerializer,
    OrderSerializer,
    OrderListSerializer,
    ApprovalResponseSerializer,
    ErrorResponseSerializer,
    PaymentSummarySerializer,
)

from apps.catalog.services import NoProductAvailableError
from apps.teams.services import TeamNotFoundError, NotTeamMemberError
from apps.orders.services import (
    approve_design_request,
    reject_design_request,
    advance_production_stage,
    # Exceptions
    OrdersServiceError,
    DesignRequestNotFoundError,
    OrderNotFoundError,
    InsufficientPermissionsError,
    DependencyFailureError,
)
from apps.payments.services import get_order_payment_summary

logger = logging.getLogger(__name__)


NOT_FOUND_ERRORS = (TeamNotFoundError, DesignRequestNotFoundError, OrderNotFoundError)
FORBIDDEN_ERRORS = (InsufficientPermissionsError, NotTeamMemberError)
SERVICE_ERRORS = (OrdersServiceError, TeamNotFoundError, NotTeamMemberError, NoProductAvailableError)


def service_error_response(exc):
    """Translate a service exception into an error response."""
    if isinstance(exc, NOT_FOUND_ERRORS):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, FORBIDDEN_ERRORS):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, DependencyFailureError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return Response({'error': str(exc), 'code': exc.code}, status=status_code)


def validation_error_response(serializer):
    return Response(
        {'error': 'Invalid request', 'details': serializer.errors, 'code': 'validation_error'},
        status=status.HTTP_400_BAD_REQUEST
    )


class OrdersPagination(PageNumberPagination):
    """Custom pagination for orders and design requests."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class DesignRequestViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Design requests of the teams the user belongs to.

    list: Get design requests (filterable by team/approval status)
    retrieve: Get a specific design request
    approve: Approve and assemble the order (team managers)
    reject: Cancel a pending request (team managers)
    """

    serializer_class = DesignRequestSerializer
    permission_classes = [IsAuthenticated, IsOrderTeamMember]
    pagination_class = OrdersPagination

    def get_queryset(self):
        """Return requests of teams where user is a member."""
        queryset = DesignRequest.objects.select_related('requested_by', 'approved_by', 'team')
        if self.action in ['approve', 'reject']:
            return queryset

        queryset = queryset.filter(team__memberships__user=self.request.user).distinct()

        filter_serializer = DesignRequestFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if params.get('team'):
            queryset = queryset.filter(team_id=params['team'])
        if params.get('approval_status'):
            queryset = queryset.filter(approval_status=params['approval_status'])
        return queryset

    @extend_schema(
        request=ApproveDesignRequestInputSerializer,
        responses={200: ApprovalResponseSerializer, 400: ErrorResponseSerializer, 403: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    )
    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        """
        Approve a design request and create (or extend) its order.

        POST /api/design-requests/{id}/approve/
        Body: {"team_id": "<uuid>", "order_id": "<uuid, optional>"}
        """
        serializer = ApproveDesignRequestInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer)

        try:
            result = approve_design_request(
                design_request_id=pk,
                team_id=serializer.validated_data['team_id'],
                user=request.user,
                order_id=serializer.validated_data.get('order_id'),
            )
        except SERVICE_ERRORS as e:
            logger.warning("Approval of design request %s failed: %s", pk, e)
            return service_error_response(e)

        order = result.order
        design_request = result.design_request
        return Response({
            'success': True,
            'action': result.action,
            'order': {
                'id': str(order.id),
                'total_amount_clp': order.total_amount_clp,
                'status': order.status,
                'payment_status': order.payment_status,
            },
            'design_request': {
                'id': design_request.id,
                'status': design_request.status,
                'approval_status': design_request.approval_status,
                'order_id': str(design_request.order_id) if design_request.order_id else None,
            },
        })

    @extend_schema(
        request=RejectDesignRequestInputSerializer,
        responses={200: DesignRequestSerializer, 400: ErrorResponseSerializer, 403: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    )
    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        """
        Reject a pending design request.

        POST /api/design-requests/{id}/reject/
        Body: {"team_id": "<uuid>", "reason": "optional"}
        """
        serializer = RejectDesignRequestInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer)

        try:
            design_request = reject_design_request(
                design_request_id=pk,
                team_id=serializer.validated_data['team_id'],
                user=request.user,
                reason=serializer.validated_data.get('reason', ''),
            )
        except SERVICE_ERRORS as e:
            return service_error_response(e)

        return Response(DesignRequestSerializer(design_request).data)


class OrderViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Orders of the teams the user belongs to.

    list: Get orders (filterable by team/payment status)
    retrieve: Get a specific order with its items
    payment_summary: Get split payment progress
    advance_stage: Move the order forward in production (staff only)
    """

    permission_classes = [IsAuthenticated, IsOrderTeamMember]
    pagination_class = OrdersPagination

    def get_queryset(self):
        queryset = Order.objects.select_related('team', 'created_by').prefetch_related('items__player')
        user = self.request.user

        if not user.is_staff:
            queryset = queryset.filter(Q(team__memberships__user=user)).distinct()

        filter_serializer = OrderFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if params.get('team'):
            queryset = queryset.filter(team_id=params['team'])
        if params.get('payment_status'):
            queryset = queryset.filter(payment_status=params['payment_status'])
        return queryset

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return OrderListSerializer
        return OrderSerializer

    @extend_schema(responses={200: PaymentSummarySerializer})
    @action(detail=True, methods=['get'])
    def payment_summary(self, request, pk=None):
        """
        Get split payment progress for an order.

        GET /api/orders/{id}/payment_summary/
        """
        order = self.get_object()
        summary = get_order_payment_summary(order_id=order.id)
        return Response(PaymentSummarySerializer(summary).data)

    @extend_schema(
        request=AdvanceStageInputSerializer,
        responses={200: OrderSerializer, 400: ErrorResponseSerializer, 403: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    )
    @action(detail=True, methods=['post'])
    def advance_stage(self, request, pk=None):
        """
        Advance an order to the next (or given) production stage.

        POST /api/orders/{id}/advance_stage/
        Body: {"stage": "optional stage key"}
        """
        serializer = AdvanceStageInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer)

        try:
            order = advance_production_stage(
                order_id=pk,
                user=request.user,
                stage=serializer.validated_data.get('stage'),
            )
        except OrdersServiceError as e:
            return service_error_response(e)

        return Response(OrderSerializer(order).data)
