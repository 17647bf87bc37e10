# products/models.py

from decimal import Decimal, ROUND_HALF_UP
from django.conf import settings
from django.db import models
from django.core.validators import MaxValueValidator, MinValueValidator
from django.core.exceptions import ValidationError


CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def percent_of(amount, percent):
    return (Decimal(amount) * Decimal(percent or 0) / HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)


class Product(models.Model):
    # Basic Info
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')

    category = models.ForeignKey(
        'category.Category', on_delete=models.SET_NULL, blank=True, null=True, related_name="products"
    )
    # Denormalised for listings
    category_name = models.CharField(max_length=255, blank=True, null=True)

    # Pricing
    base_price = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0.00"))]
    )
    discount_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))]
    )
    gst_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))]
    )
    final_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), editable=False)

    # Stock
    stock_quantity = models.PositiveIntegerField(default=0)

    # Variants offered for this product, e.g. ["Chocolate", "Vanilla"] / ["1kg", "2kg"]
    flavors = models.JSONField(default=list, blank=True)
    sizes = models.JSONField(default=list, blank=True)
    image_urls = models.JSONField(default=list, blank=True)

    is_featured = models.BooleanField(default=False)
    is_special_offer = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_active"], name="products_pr_is_acti_0b5c1e_idx"),
            models.Index(fields=["-created_at"], name="products_pr_created_4e2f7a_idx"),
        ]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.final_price = self.compute_final_price()
        self.category_name = self.category.name if self.category_id else None
        super().save(*args, **kwargs)

    # Pricing helpers (per unit)
    @property
    def discount_amount(self):
        return percent_of(self.base_price, self.discount_percent)

    @property
    def selling_price(self):
        """Price after the product discount, before GST."""
        return Decimal(self.base_price) - self.discount_amount

    @property
    def gst_amount(self):
        return percent_of(self.selling_price, self.gst_percent)

    def compute_final_price(self):
        return (self.selling_price + self.gst_amount).quantize(CENT, rounding=ROUND_HALF_UP)

    @property
    def is_in_stock(self):
        return self.stock_quantity > 0

    def reserve_stock(self, quantity, user=None, reference=""):
        """
        Take stock for an order line.
        Raises ValidationError if insufficient stock.
        """
        if self.stock_quantity < quantity:
            raise ValidationError(
                f"Insufficient stock for {self.name}. "
                f"Available: {self.stock_quantity}, Requested: {quantity}"
            )
        before = self.stock_quantity
        self.stock_quantity -= quantity
        self.save(update_fields=['stock_quantity', 'updated_at'])
        StockTransaction.objects.create(
            product=self,
            transaction_type=StockTransaction.TransactionType.RESERVE,
            quantity=-quantity,
            stock_before=before,
            stock_after=self.stock_quantity,
            reference=reference,
            created_by=user,
        )

    def release_stock(self, quantity, user=None, reference=""):
        """Put stock back when an order is cancelled"""
        before = self.stock_quantity
        self.stock_quantity += quantity
        self.save(update_fields=['stock_quantity', 'updated_at'])
        StockTransaction.objects.create(
            product=self,
            transaction_type=StockTransaction.TransactionType.RELEASE,
            quantity=quantity,
            stock_before=before,
            stock_after=self.stock_quantity,
            reference=reference,
            created_by=user,
        )


class StockTransaction(models.Model):
    """Audit trail of every stock movement caused by orders."""

    class TransactionType(models.TextChoices):
        RESERVE = "RESERVE", "Stock Reserved (Order Placed)"
        RELEASE = "RELEASE", "Stock Released (Order Cancelled)"

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='stock_transactions')
    transaction_type = models.CharField(max_length=20, choices=TransactionType.choices)
    quantity = models.IntegerField(
        help_text="Change in quantity (negative for reduction, positive for addition)"
    )
    stock_before = models.PositiveIntegerField()
    stock_after = models.PositiveIntegerField()
    reference = models.CharField(max_length=64, blank=True, help_text="Order id that caused the movement")
    created_at = models.DateTimeField(auto_now_add=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=["product", "-created_at"], name="products_st_product_9a1d3c_idx"),
            models.Index(fields=["transaction_type"], name="products_st_transac_5c8e2b_idx"),
        ]

    def __str__(self):
        return f"{self.transaction_type} - {self.product.name} - Qty: {self.quantity}"
