# coupons/models.py
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone


class Coupon(models.Model):
    """Trainer / influencer referral code, e.g. JOHN_10."""
    code = models.CharField(max_length=64, unique=True)
    trainer_name = models.CharField(max_length=120, db_index=True)
    trainer_id = models.CharField(max_length=64, blank=True, null=True)
    discount_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('10'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
    )

    # Usage limits
    max_uses = models.PositiveIntegerField(blank=True, null=True, help_text="Total usage limit (blank = unlimited)")
    usage_count = models.PositiveIntegerField(default=0, help_text="Number of times used")
    expiry_date = models.DateTimeField(blank=True, null=True)

    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, blank=True, null=True, related_name='coupons_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.code} - {self.discount_percent}% off ({self.trainer_name})"

    def is_valid(self, now=None):
        """Return (ok, error message)."""
        now = now or timezone.now()
        if not self.is_active:
            return False, "This coupon code is no longer active"
        if self.expiry_date and self.expiry_date < now:
            return False, "This coupon code has expired"
        if self.max_uses and self.usage_count >= self.max_uses:
            return False, "This coupon code has reached its usage limit"
        return True, ""

    def calculate_discount(self, cart_total):
        discount = (Decimal(cart_total) * self.discount_percent / 100).quantize(Decimal('0.01'))
        return min(discount, Decimal(cart_total))


class AppliedCoupon(models.Model):
    """One row per order a coupon was used on; feeds the commission reports."""
    coupon = models.ForeignKey(Coupon, on_delete=models.CASCADE, related_name='applied_coupons')
    order = models.ForeignKey('orders.Order', on_delete=models.CASCADE, related_name='applied_coupons')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='applied_coupons')
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2)
    trainer_name = models.CharField(max_length=120)
    commission_note = models.CharField(max_length=255, blank=True)
    applied_date = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-applied_date']
        indexes = [
            models.Index(fields=['trainer_name', '-applied_date'], name='coupons_applied_trainer_idx'),
        ]

    def __str__(self):
        return f"{self.coupon.code} on {self.order_id}"
