from django.contrib import admin
from .models import Product, StockTransaction


class StockTransactionInline(admin.TabularInline):
    model = StockTransaction
    extra = 0
    fields = ['transaction_type', 'quantity', 'stock_before', 'stock_after', 'reference', 'created_at']
    readonly_fields = fields
    can_delete = False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'category_name', 'base_price', 'discount_percent', 'final_price', 'stock_quantity', 'is_active']
    list_filter = ['is_active', 'is_featured', 'is_special_offer', 'category']
    search_fields = ['name', 'description']
    readonly_fields = ['final_price', 'category_name', 'created_at', 'updated_at']
    inlines = [StockTransactionInline]


@admin.register(StockTransaction)
class StockTransactionAdmin(admin.ModelAdmin):
    list_display = ['product', 'transaction_type', 'quantity', 'stock_before', 'stock_after', 'reference', 'created_at']
    list_filter = ['transaction_type']
    search_fields = ['product__name', 'reference']
