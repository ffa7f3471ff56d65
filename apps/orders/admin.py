# ==========================================
# apps/orders/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import DesignRequest, Order, OrderItem, OrderPaymentStatus


class OrderItemInline(admin.TabularInline):
    """Inline admin for order items within an order."""
    model = OrderItem
    extra = 0
    fields = ['player', 'product_name', 'unit_price_clp', 'quantity', 'customization']
    readonly_fields = ['product_name', 'unit_price_clp', 'quantity']

    def has_add_permission(self, request, obj=None):
        """Items are created by the order assembler."""
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        'short_id',
        'team',
        'status',
        'payment_badge',
        'current_stage',
        'total_amount_clp',
        'created_at',
    ]
    list_filter = ['status', 'payment_status', 'payment_mode', 'current_stage', 'created_at']
    search_fields = ['id', 'team__name', 'created_by__email']
    readonly_fields = ['id', 'subtotal_clp', 'total_amount_clp', 'paid_at', 'created_at', 'updated_at']
    inlines = [OrderItemInline]
    date_hierarchy = 'created_at'

    def short_id(self, obj):
        return str(obj.id)[:8]
    short_id.short_description = 'Order'

    def payment_badge(self, obj):
        """Display payment status as colored badge."""
        colors = {
            OrderPaymentStatus.PENDING: ('#E5C49A', '#2C1810'),
            OrderPaymentStatus.PAID: ('#6B8E5E', 'white'),
        }
        bg, fg = colors.get(obj.payment_status, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_payment_status_display()
        )
    payment_badge.short_description = 'Payment'


@admin.register(DesignRequest)
class DesignRequestAdmin(admin.ModelAdmin):
    list_display = ['id', 'team', 'product_name', 'status', 'approval_status', 'order', 'created_at']
    list_filter = ['status', 'approval_status', 'created_at']
    search_fields = ['team__name', 'product_slug', 'product_name']
    readonly_fields = ['approval_status', 'order', 'approved_at', 'approved_by', 'created_at', 'updated_at']
