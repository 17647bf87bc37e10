from django.urls import path
from . import views

urlpatterns = [
    # session
    path('csrf/', views.csrf, name='csrf'),
    path('login/', views.login_view, name='login'),
    path('logout/', views.logout_view, name='logout'),
    path('me/', views.me, name='me'),

    # profile
    path('sync/', views.sync_user, name='sync_user'),
    path('profile/', views.update_profile, name='update_profile'),
    path('checkout/', views.checkout_data, name='checkout_data'),

    # addresses
    path('address/', views.addresses, name='addresses'),
    path('address/<int:pk>/default/', views.address_make_default, name='address_make_default'),
    path('address/<int:pk>/', views.address_delete, name='address_delete'),

    # public lookups
    path('check-email/', views.check_email_exists, name='check_email_exists'),
    path('check-phone/', views.check_phone_exists, name='check_phone_exists'),
]
