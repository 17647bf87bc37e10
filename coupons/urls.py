from django.urls import path
from . import views

urlpatterns = [
    # customer
    path('validate/', views.coupon_validate, name='coupon_validate'),
    path('apply/', views.coupon_apply, name='coupon_apply'),

    # admin
    path('', views.coupon_list, name='coupon_list'),
    path('create/', views.coupon_create, name='coupon_create'),
    path('<int:coupon_id>/', views.coupon_detail, name='coupon_detail'),
    path('<int:coupon_id>/deactivate/', views.coupon_deactivate, name='coupon_deactivate'),
    path('<int:coupon_id>/reactivate/', views.coupon_reactivate, name='coupon_reactivate'),
    path('trainer/<str:trainer_name>/commission-report/', views.trainer_commission_report, name='trainer_commission_report'),
    path('trainer/<str:trainer_name>/commission-report/export/', views.trainer_commission_export, name='trainer_commission_export'),
    path('trainer/<str:trainer_name>/applied/', views.trainer_applied_coupons, name='trainer_applied_coupons'),
]
