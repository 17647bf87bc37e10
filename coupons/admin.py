from django.contrib import admin
from .models import AppliedCoupon, Coupon


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ['code', 'trainer_name', 'discount_percent', 'usage_count', 'max_uses', 'expiry_date', 'is_active']
    list_filter = ['is_active', 'expiry_date']
    search_fields = ['code', 'trainer_name']
    readonly_fields = ['usage_count', 'created_at', 'updated_at']

    fieldsets = (
        ('Trainer', {
            'fields': ('code', 'trainer_name', 'trainer_id')
        }),
        ('Discount', {
            'fields': ('discount_percent',)
        }),
        ('Validity', {
            'fields': ('expiry_date', 'max_uses', 'usage_count', 'is_active')
        }),
        ('Audit', {
            'fields': ('created_by', 'created_at', 'updated_at')
        }),
    )


@admin.register(AppliedCoupon)
class AppliedCouponAdmin(admin.ModelAdmin):
    list_display = ['coupon', 'order', 'user', 'discount_amount', 'trainer_name', 'applied_date']
    list_filter = ['applied_date']
    search_fields = ['coupon__code', 'trainer_name', 'order__id']
