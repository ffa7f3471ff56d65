# ==========================================
# apps/payments/models.py
# ==========================================

from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
import uuid


class ContributionStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'


class ProcessorPayment(models.Model):
    """Fields and transitions shared by every payment settled through Mercado Pago."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    currency = models.CharField(max_length=3, default='CLP')
    status = models.CharField(
        max_length=20,
        choices=ContributionStatus.choices,
        default=ContributionStatus.PENDING
    )
    # split_<order>_<user>_<attempt> or bulk_<bulk payment id>
    external_reference = models.CharField(max_length=200, unique=True)

    # Mercado Pago identifiers
    mp_preference_id = models.CharField(max_length=200, blank=True)
    mp_payment_id = models.CharField(max_length=100, blank=True)
    raw_payment_data = models.JSONField(default=dict, blank=True)

    paid_at = models.DateTimeField(null=True, blank=True)
    # Processor approved a payment the ledger could not accept
    needs_refund = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    @property
    def is_approved(self):
        return self.status == ContributionStatus.APPROVED

    def mark_approved(self, payment_id=None, raw_payment_data=None):
        """Mark payment as approved."""
        self.status = ContributionStatus.APPROVED
        self.paid_at = timezone.now()
        self.needs_refund = False
        if payment_id:
            self.mp_payment_id = str(payment_id)
        if raw_payment_data is not None:
            self.raw_payment_data = raw_payment_data
        self.save()

    def mark_rejected(self, payment_id=None, raw_payment_data=None, needs_refund=False):
        """Mark payment as rejected."""
        self.status = ContributionStatus.REJECTED
        if needs_refund:
            self.needs_refund = True
        if payment_id:
            self.mp_payment_id = str(payment_id)
        if raw_payment_data is not None:
            self.raw_payment_data = raw_payment_data
        self.save()


class PaymentContribution(ProcessorPayment):
    """One member's partial payment towards a team order."""

    order = models.ForeignKey(
        'orders.Order',
        on_delete=models.PROTECT,
        related_name='payment_contributions'
    )
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='payment_contributions'
    )

    amount_clp = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    class Meta:
        db_table = 'payment_contributions'
        constraints = [
            models.UniqueConstraint(
                fields=['order', 'user'],
                condition=models.Q(status='approved'),
                name='unique_approved_contribution',
            ),
        ]
        indexes = [
            models.Index(fields=['order', 'status'], name='contrib_order_status_idx'),
            models.Index(fields=['user', 'status'], name='contrib_user_status_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.get_display_name()} - {self.amount_clp} CLP ({self.status})"


class BulkPayment(ProcessorPayment):
    """A team manager paying the remaining balance of one or more orders at once."""

    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='bulk_payments'
    )
    orders = models.ManyToManyField(
        'orders.Order',
        through='BulkPaymentOrder',
        related_name='bulk_payments'
    )

    total_amount_clp = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    class Meta:
        db_table = 'bulk_payments'
        indexes = [
            models.Index(fields=['user', 'status'], name='bulk_user_status_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"Bulk {str(self.id)[:8]} by {self.user.get_display_name()} - {self.total_amount_clp} CLP ({self.status})"


class BulkPaymentOrder(models.Model):
    """Share of a bulk payment allocated to one order."""

    bulk_payment = models.ForeignKey(BulkPayment, on_delete=models.CASCADE, related_name='order_links')
    order = models.ForeignKey('orders.Order', on_delete=models.PROTECT, related_name='bulk_payment_links')
    # Outstanding balance of the order when the payment was started
    amount_clp = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    class Meta:
        db_table = 'bulk_payment_orders'
        unique_together = [['bulk_payment', 'order']]

    def __str__(self):
        return f"{self.order} <- {self.amount_clp} CLP"
