# products/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('', views.product_list, name='product_list'),
    path('<int:pk>/', views.product_detail, name='product_detail'),

    # Staff
    path('admin/', views.admin_product_list, name='admin_product_list'),
    path('admin/create/', views.admin_product_create, name='admin_product_create'),
    path('admin/<int:pk>/', views.admin_product_update, name='admin_product_update'),
    path('admin/<int:pk>/delete/', views.admin_product_delete, name='admin_product_delete'),
]
