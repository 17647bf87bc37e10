# orders/models.py

from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        SHIPPED = 'SHIPPED', 'Shipped'
        DELIVERED = 'DELIVERED', 'Delivered'
        CANCELLED = 'CANCELLED', 'Cancelled'

    class PaymentMethod(models.TextChoices):
        COD = 'COD', 'Cash on Delivery'
        RAZORPAY = 'RAZORPAY', 'Razorpay'

    # Generated by orders.idgen, e.g. 20260203-193302-4567894521
    id = models.CharField(max_length=32, primary_key=True, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='orders')

    status = models.CharField(max_length=12, choices=Status.choices, default=Status.PENDING, db_index=True)
    payment_method = models.CharField(max_length=10, choices=PaymentMethod.choices, default=PaymentMethod.COD)

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    gst_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    coupon_discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    razorpay_order_id = models.CharField(max_length=100, blank=True, null=True, help_text="Razorpay Order ID for tracking")
    razorpay_payment_id = models.CharField(max_length=100, blank=True, null=True, help_text="Razorpay Payment ID for refunds")
    razorpay_signature = models.CharField(max_length=255, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Status timestamps
    paid_at = models.DateTimeField(null=True, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', '-created_at'], name='orders_user_created_idx'),
        ]

    def __str__(self):
        return f'{self.id} - {self.user}'

    @property
    def is_paid(self):
        return self.paid_at is not None

    @property
    def is_online(self):
        return self.payment_method == self.PaymentMethod.RAZORPAY

    def within_cancellation_window(self, now=None):
        """Delivered orders may still be cancelled for a few days after delivery."""
        if self.status != self.Status.DELIVERED:
            return True
        if not self.delivered_at:
            return False
        now = now or timezone.now()
        return now - self.delivered_at <= timedelta(days=settings.CANCELLATION_WINDOW_DAYS)


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('products.Product', on_delete=models.PROTECT, related_name='order_items')

    # Snapshot at purchase time
    product_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=12, decimal_places=2, help_text="Final unit price incl. GST")
    flavor = models.CharField(max_length=100, blank=True, default='')
    size = models.CharField(max_length=100, blank=True, default='')

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f'{self.product_name} x {self.quantity}'

    @property
    def line_total(self):
        return self.price * self.quantity


class OrderAddress(models.Model):
    """Shipping address as it was when the order was placed."""
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='address')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='order_addresses')
    name = models.CharField(max_length=120)
    phone = models.CharField(max_length=20)
    address = models.CharField(max_length=255)
    city = models.CharField(max_length=120)
    state = models.CharField(max_length=120, blank=True, null=True)
    pincode = models.CharField(max_length=12)

    def __str__(self):
        return f'{self.name}, {self.city} ({self.order_id})'


class OrderCancellationRequest(models.Model):
    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        APPROVED = 'APPROVED', 'Approved'
        REJECTED = 'REJECTED', 'Rejected'

    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='cancellation_request')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='cancellation_requests')
    reason = models.TextField()
    upi_id = models.CharField(max_length=100, blank=True, null=True, help_text="Where a manual refund should be sent")
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    decided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, blank=True, null=True, related_name='cancellation_decisions'
    )
    decided_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='orders_cancel_status_idx'),
        ]

    def __str__(self):
        return f'Cancellation {self.order_id} ({self.status})'


class OrderRefund(models.Model):
    class Status(models.TextChoices):
        INITIATED = 'INITIATED', 'Initiated'
        REFUND_COMPLETED = 'REFUND_COMPLETED', 'Refund Completed'

    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='refund')
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2)
    reason = models.TextField(blank=True)
    upi_id = models.CharField(max_length=100, blank=True, null=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.INITIATED)
    razorpay_refund_id = models.CharField(max_length=100, blank=True, null=True)
    initiated_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-initiated_at']
        indexes = [
            models.Index(fields=['status', '-initiated_at'], name='orders_refund_status_idx'),
        ]

    def __str__(self):
        return f'Refund {self.order_id} ₹{self.refund_amount} ({self.status})'
