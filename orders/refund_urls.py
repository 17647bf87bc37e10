# orders/refund_urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('admin/all/', views.refund_list, name='refund_list'),
    path('admin/status/<str:status>/', views.refund_list_by_status, name='refund_list_by_status'),
    path('order/<str:order_id>/', views.refund_for_order, name='refund_for_order'),
    path('<str:order_id>/status/', views.refund_update_status, name='refund_update_status'),
]
