from django.urls import path
from . import views

urlpatterns = [
    path('orders/', views.order_list, name='admin_order_list'),
    path('orders/<str:order_id>/', views.order_detail, name='admin_order_detail'),
    path('orders/<str:order_id>/status/', views.order_status_update, name='admin_order_status'),
    path('orders/<str:order_id>/invoice/', views.order_invoice, name='admin_order_invoice'),
]
