from django.contrib import admin
from .models import Address, Profile


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ('name', 'user', 'city', 'pincode', 'is_default', 'created_at')
    list_filter = ('is_default', 'city')
    search_fields = ('name', 'phone', 'user__username', 'user__email', 'pincode')


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'phone')
    search_fields = ('user__username', 'user__email', 'phone')
