# ==========================================
# apps/payments/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import BulkPayment, BulkPaymentOrder, PaymentContribution, ContributionStatus


def _status_badge(obj):
    colors = {
        ContributionStatus.PENDING: ('#E5C49A', '#2C1810'),
        ContributionStatus.APPROVED: ('#6B8E5E', 'white'),
        ContributionStatus.REJECTED: ('#B85C5C', 'white'),
    }
    bg, fg = colors.get(obj.status, ('#ccc', '#666'))
    return format_html(
        '<span style="background: {}; color: {}; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        bg, fg, obj.get_status_display()
    )


@admin.register(PaymentContribution)
class PaymentContributionAdmin(admin.ModelAdmin):
    list_display = [
        'external_reference',
        'user',
        'amount_clp',
        'status_badge',
        'needs_refund',
        'paid_at',
        'created_at',
    ]
    list_filter = ['status', 'needs_refund', 'created_at']
    search_fields = ['external_reference', 'mp_payment_id', 'user__email']
    readonly_fields = [
        'id',
        'order',
        'user',
        'amount_clp',
        'external_reference',
        'mp_preference_id',
        'mp_payment_id',
        'raw_payment_data',
        'paid_at',
        'created_at',
        'updated_at',
    ]

    def status_badge(self, obj):
        """Display contribution status as colored badge."""
        return _status_badge(obj)
    status_badge.short_description = 'Status'


class BulkPaymentOrderInline(admin.TabularInline):
    model = BulkPaymentOrder
    extra = 0
    fields = ['order', 'amount_clp']
    readonly_fields = ['order', 'amount_clp']
    can_delete = False


@admin.register(BulkPayment)
class BulkPaymentAdmin(admin.ModelAdmin):
    list_display = [
        'external_reference',
        'user',
        'total_amount_clp',
        'status_badge',
        'needs_refund',
        'paid_at',
        'created_at',
    ]
    list_filter = ['status', 'needs_refund', 'created_at']
    search_fields = ['external_reference', 'mp_payment_id', 'user__email']
    inlines = [BulkPaymentOrderInline]
    readonly_fields = [
        'id',
        'user',
        'total_amount_clp',
        'external_reference',
        'mp_preference_id',
        'mp_payment_id',
        'raw_payment_data',
        'paid_at',
        'created_at',
        'updated_at',
    ]

    def status_badge(self, obj):
        """Display bulk payment status as colored badge."""
        return _status_badge(obj)
    status_badge.short_description = 'Status'
