from django.contrib import admin
from .models import Order, OrderAddress, OrderCancellationRequest, OrderItem, OrderRefund


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ['product', 'product_name', 'quantity', 'price', 'flavor', 'size']
    readonly_fields = fields
    can_delete = False


class OrderAddressInline(admin.StackedInline):
    model = OrderAddress
    extra = 0
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'status', 'payment_method', 'total_amount', 'paid_at', 'created_at']
    list_filter = ['status', 'payment_method', 'created_at']
    search_fields = ['id', 'user__email', 'user__username', 'razorpay_order_id', 'razorpay_payment_id']
    readonly_fields = ['id', 'created_at', 'updated_at', 'paid_at', 'shipped_at', 'delivered_at', 'cancelled_at']
    inlines = [OrderAddressInline, OrderItemInline]


@admin.register(OrderCancellationRequest)
class OrderCancellationRequestAdmin(admin.ModelAdmin):
    list_display = ['order', 'user', 'status', 'upi_id', 'decided_by', 'created_at']
    list_filter = ['status']
    search_fields = ['order__id', 'user__email', 'reason']


@admin.register(OrderRefund)
class OrderRefundAdmin(admin.ModelAdmin):
    list_display = ['order', 'refund_amount', 'status', 'upi_id', 'razorpay_refund_id', 'initiated_at', 'completed_at']
    list_filter = ['status']
    search_fields = ['order__id', 'upi_id', 'razorpay_refund_id']
