from rest_framework import serializers
from .models import PaymentContribution, ContributionStatus
from apps.accounts.serializers import UserMinimalSerializer


# =============================================================================
# Input Serializers
# =============================================================================

class SplitPaymentInputSerializer(serializers.Serializer):
    """
    Validate input for starting a split payment.

    Fields use the camelCase names of the checkout client.
    """

    orderId = serializers.UUIDField()
    userId = serializers.UUIDField()
    amountClp = serializers.IntegerField()


class BulkPaymentInputSerializer(serializers.Serializer):
    """Validate input for a manager paying one or more orders in full."""

    orderIds = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class ContributionFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for contribution filtering.

    Query Parameters:
        order (UUID): Filter by order ID
        status (str): Filter by contribution status
    """

    order = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=ContributionStatus.choices, required=False)


# =============================================================================
# Output Serializers
# =============================================================================

class PaymentContributionSerializer(serializers.ModelSerializer):
    """Serializer for payment contributions."""

    user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = PaymentContribution
        fields = [
            'id',
            'order',
            'user',
            'amount_clp',
            'currency',
            'status',
            'external_reference',
            'mp_preference_id',
            'mp_payment_id',
            'paid_at',
            'needs_refund',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class SplitPaymentResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    contributionId = serializers.UUIDField()
    preferenceId = serializers.CharField()
    initPoint = serializers.CharField(allow_null=True)
    sandboxInitPoint = serializers.CharField(allow_null=True)


class BulkPaymentResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    bulkPaymentId = serializers.UUIDField()
    preferenceId = serializers.CharField()
    initPoint = serializers.CharField(allow_null=True)
    sandboxInitPoint = serializers.CharField(allow_null=True)
    totalAmountClp = serializers.IntegerField()
    orderCount = serializers.IntegerField()
