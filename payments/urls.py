#payments/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('create-order/', views.create_order, name='razorpay_create_order'),
    path('verify/', views.verify_payment, name='razorpay_verify_payment'),
]
