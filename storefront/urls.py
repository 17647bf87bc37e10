"""
URL configuration for the storefront project.

Every app exposes a JSON API under /api/; the Django admin stays at /admin/.
"""
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),

    path('api/user/', include('user.urls')),
    path('api/categories/', include('category.urls')),
    path('api/products/', include('products.urls')),
    path('api/cart/', include('cart.urls')),
    path('api/orders/', include('orders.urls')),
    path('api/cancellations/', include('orders.cancellation_urls')),
    path('api/refunds/', include('orders.refund_urls')),
    path('api/payment/', include('payments.urls')),
    path('api/coupons/', include('coupons.urls')),
    path('api/admin/', include('admin_side.urls')),
]
