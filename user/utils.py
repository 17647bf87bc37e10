# user/utils.py
from storefront.api import timestamp
from .models import get_profile


def display_name(user):
    return user.get_full_name() or user.first_name or None


def serialize_user(user):
    if user is None:
        return None
    return {
        'id': user.id,
        'email': user.email,
        'name': display_name(user),
        'phone': get_profile(user).phone,
    }


def serialize_address(address):
    return {
        'id': address.id,
        'user_id': address.user_id,
        'name': address.name,
        'phone': address.phone,
        'address': address.address,
        'city': address.city,
        'state': address.state,
        'pincode': address.pincode,
        'is_default': address.is_default,
        'created_at': timestamp(address.created_at),
    }
