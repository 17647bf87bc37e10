import logging

from django.contrib.auth import authenticate, get_user_model, login, logout
from django.core.exceptions import PermissionDenied
from django.db import transaction
from django.http import JsonResponse
from django.middleware.csrf import get_token
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from cart.services import get_cart_with_totals
from storefront.api import api_login_required, error_response, form_error_message, json_errors, parse_json
from .forms import AddressForm, LoginForm, ProfileForm
from .models import Address, Profile, get_profile
from .utils import serialize_address, serialize_user

logger = logging.getLogger(__name__)
User = get_user_model()


# ========== SESSION ==========

@ensure_csrf_cookie
@require_GET
def csrf(request):
    return JsonResponse({'csrf_token': get_token(request)})


@require_POST
@json_errors
def login_view(request):
    form = LoginForm(parse_json(request))
    if not form.is_valid():
        return error_response(form_error_message(form))

    username = form.cleaned_data['username']
    # Customers sign in with their email address
    match = User.objects.filter(email__iexact=username).first()
    if match:
        username = match.get_username()

    user = authenticate(request, username=username, password=form.cleaned_data['password'])
    if user is None or not user.is_active:
        return error_response("Invalid credentials", status=401)

    login(request, user)
    return JsonResponse({'success': True, 'user': serialize_user(user)})


@require_POST
def logout_view(request):
    logout(request)
    return JsonResponse({'success': True})


@api_login_required
@require_GET
def me(request):
    data = serialize_user(request.user)
    data['is_admin'] = request.user.is_staff
    return JsonResponse(data)


# ========== PROFILE ==========

@api_login_required
@require_POST
@json_errors
def sync_user(request):
    """Refresh email / name / phone, ignoring blank values so existing data is never wiped."""
    form = ProfileForm(parse_json(request))
    if not form.is_valid():
        return error_response(form_error_message(form))

    user = request.user
    data = form.cleaned_data
    user_fields = []

    if data['email'].strip():
        user.email = data['email'].strip()
        user_fields.append('email')
    if data['name'].strip():
        user.first_name = data['name'].strip()
        user_fields.append('first_name')

    with transaction.atomic():
        if user_fields:
            user.save(update_fields=user_fields)
        if data['phone'].strip():
            profile = get_profile(user)
            profile.phone = data['phone'].strip()
            profile.save(update_fields=['phone'])

    logger.info("Synced user %s (fields: %s)", user.pk, user_fields)
    return JsonResponse(serialize_user(user))


@api_login_required
@require_http_methods(["PATCH", "POST"])
@json_errors
def update_profile(request):
    form = ProfileForm(parse_json(request))
    if not form.is_valid():
        return error_response(form_error_message(form))

    user = request.user
    name = form.cleaned_data['name'].strip()
    phone = form.cleaned_data['phone'].strip()
    if name:
        user.first_name = name
        user.save(update_fields=['first_name'])
    if phone:
        profile = get_profile(user)
        profile.phone = phone
        profile.save(update_fields=['phone'])
    return JsonResponse(serialize_user(user))


# ========== ADDRESS MANAGEMENT ==========

def _owned_address(request, pk):
    addr = get_object_or_404(Address, pk=pk)
    if addr.user_id != request.user.id:
        raise PermissionDenied("Address not found or unauthorized")
    return addr


@api_login_required
@require_http_methods(["GET", "POST"])
@json_errors
def addresses(request):
    if request.method == 'GET':
        qs = Address.objects.filter(user=request.user).order_by('-created_at')
        return JsonResponse([serialize_address(a) for a in qs], safe=False)

    form = AddressForm(parse_json(request))
    if not form.is_valid():
        return error_response("Missing required address fields", errors=form.errors)

    addr = form.save(commit=False)
    addr.user = request.user
    addr.save()
    return JsonResponse(serialize_address(addr), status=201)


@api_login_required
@require_http_methods(["PATCH", "POST"])
@json_errors
def address_make_default(request, pk):
    addr = _owned_address(request, pk)
    with transaction.atomic():
        Address.objects.filter(user=request.user).update(is_default=False)
        addr.is_default = True
        addr.save(update_fields=['is_default'])
    return JsonResponse(serialize_address(addr))


@api_login_required
@require_http_methods(["DELETE"])
@json_errors
def address_delete(request, pk):
    addr = _owned_address(request, pk)
    addr.delete()
    return JsonResponse({'success': True, 'message': 'Address deleted successfully'})


# ========== LOOKUPS ==========

@require_GET
def check_email_exists(request):
    email = request.GET.get('email', '').strip()
    if not email:
        return error_response("Email is required")
    return JsonResponse({'exists': User.objects.filter(email__iexact=email).exists()})


@require_GET
def check_phone_exists(request):
    phone = request.GET.get('phone', '').strip()
    if not phone:
        return error_response("Phone is required")
    return JsonResponse({'exists': Profile.objects.filter(phone=phone).exists()})


@api_login_required
@require_GET
@json_errors
def checkout_data(request):
    """Everything the checkout page needs in one round trip."""
    addrs = Address.objects.filter(user=request.user).order_by('-is_default', '-created_at')
    return JsonResponse({
        'user': serialize_user(request.user),
        'addresses': [serialize_address(a) for a in addrs],
        'cart': get_cart_with_totals(request.user),
    })
