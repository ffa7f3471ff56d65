from rest_framework import serializers
from .models import DesignRequest, Order, OrderItem, PRODUCTION_STAGES
from apps.accounts.serializers import UserMinimalSerializer


# =============================================================================
# Input Serializers
# =============================================================================

class ApproveDesignRequestInputSerializer(serializers.Serializer):
    """
    Validate input for approving a design request.

    Fields:
        team_id (UUID): Team owning the design request
        order_id (UUID): Optional existing order to extend
    """

    team_id = serializers.UUIDField()
    order_id = serializers.UUIDField(required=False, allow_null=True)


class RejectDesignRequestInputSerializer(serializers.Serializer):
    """Validate input for rejecting a design request."""

    team_id = serializers.UUIDField()
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')


class DesignRequestFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for design request filtering.

    Query Parameters:
        team (UUID): Filter by team ID
        approval_status (str): Filter by approval status
    """

    team = serializers.UUIDField(required=False)
    approval_status = serializers.ChoiceField(
        choices=['pending', 'approved'],
        required=False
    )


class OrderFilterSerializer(serializers.Serializer):
    """Validate query parameters for order filtering."""

    team = serializers.UUIDField(required=False)
    payment_status = serializers.ChoiceField(choices=['pending', 'paid'], required=False)


class AdvanceStageInputSerializer(serializers.Serializer):
    """Validate input for advancing an order's production stage."""

    stage = serializers.ChoiceField(
        choices=[stage.value for stage in PRODUCTION_STAGES],
        required=False,
        allow_null=True
    )


# =============================================================================
# Output Serializers
# =============================================================================

class DesignRequestSerializer(serializers.ModelSerializer):
    """Main serializer for design requests."""

    requested_by = UserMinimalSerializer(read_only=True)
    approved_by = UserMinimalSerializer(read_only=True)
    order_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = DesignRequest
        fields = [
            'id',
            'team',
            'design',
            'requested_by',
            'product_slug',
            'product_name',
            'sport_slug',
            'selected_apparel',
            'mockup_urls',
            'status',
            'approval_status',
            'order_id',
            'approved_at',
            'approved_by',
            'rejection_reason',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class OrderItemSerializer(serializers.ModelSerializer):
    """Serializer for order items."""

    player = UserMinimalSerializer(read_only=True)
    line_total_clp = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id',
            'design_request',
            'product',
            'product_name',
            'unit_price_clp',
            'quantity',
            'line_total_clp',
            'player',
            'customization',
            'created_at',
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id',
            'team',
            'status',
            'payment_status',
            'payment_mode',
            'current_stage',
            'total_amount_clp',
            'currency',
            'item_count',
            'created_at',
        ]
        read_only_fields = fields

    def get_item_count(self, obj):
        return obj.items.count()


class OrderSerializer(serializers.ModelSerializer):
    """Main serializer for orders."""

    created_by = UserMinimalSerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id',
            'team',
            'created_by',
            'status',
            'payment_status',
            'payment_mode',
            'current_stage',
            'subtotal_clp',
            'total_amount_clp',
            'currency',
            'locked_at',
            'paid_at',
            'notes',
            'items',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ApprovalOrderSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    total_amount_clp = serializers.IntegerField()
    status = serializers.CharField()
    payment_status = serializers.CharField()


class ApprovalDesignRequestSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    status = serializers.CharField()
    approval_status = serializers.CharField()
    order_id = serializers.UUIDField(allow_null=True)


class ApprovalResponseSerializer(serializers.Serializer):
    """Response body of a successful approval."""

    success = serializers.BooleanField()
    action = serializers.ChoiceField(choices=['created', 'extended'])
    order = ApprovalOrderSerializer()
    design_request = ApprovalDesignRequestSerializer()


class ErrorResponseSerializer(serializers.Serializer):
    """Error body shared by every endpoint."""

    error = serializers.CharField()
    details = serializers.JSONField(required=False)
    code = serializers.CharField(required=False)


class PaymentSummarySerializer(serializers.Serializer):
    """Serializer for order payment summary."""

    order_id = serializers.UUIDField()
    total_amount_clp = serializers.IntegerField()
    paid_amount_clp = serializers.IntegerField()
    pending_amount_clp = serializers.IntegerField()
    remaining_amount_clp = serializers.IntegerField()
    percentage_paid = serializers.FloatField()
    payment_status = serializers.CharField()
    payment_mode = serializers.CharField()
    bulk_paid_amount_clp = serializers.IntegerField()
    contributor_count = serializers.IntegerField()
    approved_count = serializers.IntegerField()
    pending_count = serializers.IntegerField()
