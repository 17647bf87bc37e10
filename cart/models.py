# cart/models.py
from decimal import Decimal
from django.conf import settings
from django.db import models

from products.models import Product


class Cart(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="cart")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Cart of {self.user}"


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="cart_items")
    quantity = models.PositiveIntegerField(default=1)

    # "" means "no variant chosen"; NULLs would slip past the unique constraint
    flavor = models.CharField(max_length=100, blank=True, default='')
    size = models.CharField(max_length=100, blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['cart', 'product', 'flavor', 'size'], name='unique_cart_line'),
        ]

    def __str__(self):
        return f"{self.product.name} x {self.quantity}"

    # Line amounts priced from the product's current pricing
    @property
    def line_subtotal(self):
        return Decimal(self.product.base_price) * self.quantity

    @property
    def line_discount(self):
        return self.product.discount_amount * self.quantity

    @property
    def line_gst(self):
        return self.product.gst_amount * self.quantity

    @property
    def line_total(self):
        return self.product.final_price * self.quantity
