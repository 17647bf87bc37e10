# orders/cancellation_urls.py
from django.urls import path
from . import views

urlpatterns = [
    # staff
    path('admin/pending/', views.cancellation_pending, name='cancellation_pending'),
    path('admin/all/', views.cancellation_all, name='cancellation_all'),

    # customer
    path('', views.cancellation_create, name='cancellation_create'),
    path('order/<str:order_id>/', views.cancellation_for_order, name='cancellation_for_order'),

    # staff decisions
    path('<int:request_id>/approve/', views.cancellation_approve, name='cancellation_approve'),
    path('<int:request_id>/reject/', views.cancellation_reject, name='cancellation_reject'),
]
