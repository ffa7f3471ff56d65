from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
import uuid


class DesignRequestStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    RENDERING = 'rendering', 'Rendering'
    READY = 'ready', 'Ready'
    CANCELLED = 'cancelled', 'Cancelled'


class ApprovalStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    APPROVED = 'approved', 'Approved'


class OrderStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PAID = 'paid', 'Paid'
    PROCESSING = 'processing', 'Processing'
    SHIPPED = 'shipped', 'Shipped'
    DELIVERED = 'delivered', 'Delivered'
    CANCELLED = 'cancelled', 'Cancelled'


class OrderPaymentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PAID = 'paid', 'Paid'


class PaymentMode(models.TextChoices):
    INDIVIDUAL = 'individual', 'Individual'
    MANAGER_PAYS_ALL = 'manager_pays_all', 'Manager pays all'


class ProductionStage(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PRINTING = 'printing', 'Printing'
    CUTTING = 'cutting', 'Cutting'
    SEWING = 'sewing', 'Sewing'
    METAL_DETECTION = 'metal_detection', 'Metal detection'
    IRONING = 'ironing', 'Ironing'
    QUALITY_CONTROL = 'quality_control', 'Quality control'
    PACKAGING = 'packaging', 'Packaging'
    SHIPPING = 'shipping', 'Shipping'
    DELIVERED = 'delivered', 'Delivered'


# Fixed post-payment pipeline, in order
PRODUCTION_STAGES = [
    ProductionStage.PRINTING,
    ProductionStage.CUTTING,
    ProductionStage.SEWING,
    ProductionStage.METAL_DETECTION,
    ProductionStage.IRONING,
    ProductionStage.QUALITY_CONTROL,
    ProductionStage.PACKAGING,
    ProductionStage.SHIPPING,
    ProductionStage.DELIVERED,
]

# Orders in these states still accept new items
MODIFIABLE_ORDER_STATUSES = (OrderStatus.PENDING, OrderStatus.PAID, OrderStatus.PROCESSING)


class DesignRequest(models.Model):
    """A team's request for a customized apparel design."""

    team = models.ForeignKey('teams.Team', on_delete=models.CASCADE, related_name='design_requests')
    requested_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='design_requests'
    )
    design = models.ForeignKey(
        'catalog.Design',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='design_requests'
    )

    # Catalog hints captured by the request wizard
    product_slug = models.CharField(max_length=200, blank=True)
    product_name = models.CharField(max_length=200, blank=True)
    sport_slug = models.CharField(max_length=100, blank=True)
    selected_apparel = models.JSONField(default=dict, blank=True)
    mockup_urls = models.JSONField(default=list, blank=True)

    # Content generation state, independent of approval
    status = models.CharField(
        max_length=20,
        choices=DesignRequestStatus.choices,
        default=DesignRequestStatus.PENDING
    )
    # Never regresses once approved
    approval_status = models.CharField(
        max_length=20,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.PENDING
    )
    order = models.ForeignKey(
        'orders.Order',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='design_requests'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='approved_design_requests'
    )
    rejection_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'design_requests'
        indexes = [
            models.Index(fields=['team', 'approval_status'], name='design_req_team_appr_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        label = self.product_name or self.product_slug or 'design'
        return f"Design request #{self.pk} - {label} ({self.approval_status})"

    @property
    def is_approved(self):
        return self.approval_status == ApprovalStatus.APPROVED


class Order(models.Model):
    """Purchasable aggregate of order items for a team."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    team = models.ForeignKey('teams.Team', on_delete=models.CASCADE, related_name='orders')
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders_created'
    )

    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING)
    payment_status = models.CharField(
        max_length=20,
        choices=OrderPaymentStatus.choices,
        default=OrderPaymentStatus.PENDING
    )
    # Set once a manager's bulk payment has been approved for the order
    payment_mode = models.CharField(
        max_length=20,
        choices=PaymentMode.choices,
        default=PaymentMode.INDIVIDUAL
    )
    current_stage = models.CharField(
        max_length=20,
        choices=ProductionStage.choices,
        default=ProductionStage.PENDING
    )

    # Money in whole CLP (no minor unit)
    subtotal_clp = models.PositiveIntegerField(default=0)
    total_amount_clp = models.PositiveIntegerField(default=0)
    currency = models.CharField(max_length=3, default='CLP')

    locked_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders'
        indexes = [
            models.Index(fields=['team', 'created_at'], name='orders_team_created_idx'),
            models.Index(fields=['payment_status'], name='orders_payment_status_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"Order {str(self.id)[:8]} - {self.total_amount_clp} CLP ({self.status})"

    @property
    def can_accept_items(self):
        return self.status in MODIFIABLE_ORDER_STATUSES and self.locked_at is None

    def get_paid_amount(self):
        """Sum of approved contributions and bulk payments, read fresh from the ledger."""
        from django.db.models import Sum
        from apps.payments.models import ContributionStatus

        contributed = self.payment_contributions.filter(
            status=ContributionStatus.APPROVED
        ).aggregate(total=Sum('amount_clp'))['total'] or 0
        bulk = self.bulk_payment_links.filter(
            bulk_payment__status=ContributionStatus.APPROVED
        ).aggregate(total=Sum('amount_clp'))['total'] or 0
        return contributed + bulk

    def refresh_payment_status(self):
        """
        Recalculate payment status from approved payments.

        Callers must hold a fresh (ideally row-locked) instance.
        Returns the paid amount.
        """
        paid = self.get_paid_amount()
        is_paid = self.total_amount_clp > 0 and paid >= self.total_amount_clp

        update_fields = []
        if is_paid and self.payment_status != OrderPaymentStatus.PAID:
            self.payment_status = OrderPaymentStatus.PAID
            self.paid_at = timezone.now()
            update_fields += ['payment_status', 'paid_at']
            if self.status == OrderStatus.PENDING:
                self.status = OrderStatus.PAID
                update_fields.append('status')
        elif not is_paid and self.payment_status == OrderPaymentStatus.PAID:
            # Items were added after the order had been paid off
            self.payment_status = OrderPaymentStatus.PENDING
            self.paid_at = None
            update_fields += ['payment_status', 'paid_at']
            if self.status == OrderStatus.PAID:
                self.status = OrderStatus.PENDING
                update_fields.append('status')

        if update_fields:
            self.save(update_fields=update_fields + ['updated_at'])
        return paid

    def get_outstanding_balance(self):
        """Return unpaid amount."""
        return max(0, self.total_amount_clp - self.get_paid_amount())


class OrderItem(models.Model):
    """One priced line of an order, one per team member."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    design_request = models.ForeignKey(
        DesignRequest,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items'
    )

    # Product snapshot taken at assembly time
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items'
    )
    product_name = models.CharField(max_length=200)
    unit_price_clp = models.PositiveIntegerField()
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    player = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items'
    )
    # size / number / notes, filled in later by the player
    customization = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_items'
        indexes = [
            models.Index(fields=['order', 'player'], name='order_items_order_player_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.product_name} x{self.quantity} ({self.line_total_clp} CLP)"

    @property
    def line_total_clp(self):
        return self.unit_price_clp * self.quantity
