# orders/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('checkout/', views.checkout, name='order_checkout'),
    path('place/', views.place_order, name='place_order'),
    path('my/', views.my_orders, name='my_orders'),
    path('<str:order_id>/', views.order_detail, name='order_detail'),
    path('<str:order_id>/cancel/', views.cancel_order, name='cancel_order'),
    path('<str:order_id>/invoice/', views.order_invoice, name='order_invoice'),
]
