# cart/views.py
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from storefront.api import api_login_required, error_response, json_errors, parse_json
from . import services
from .forms import CartLineForm, CartRemoveForm


# ==================== CART ====================

@api_login_required
@require_GET
@json_errors
def cart_detail(request):
    return JsonResponse(services.get_cart_with_totals(request.user))


@api_login_required
@require_POST
@json_errors
def cart_add(request):
    form = CartLineForm(parse_json(request))
    if not form.is_valid():
        return error_response("Invalid product_id or quantity")

    data = form.cleaned_data
    item = services.add_to_cart(
        request.user, data['product_id'], data['quantity'], flavor=data['flavor'], size=data['size']
    )
    return JsonResponse(services.serialize_cart_item(item))


@api_login_required
@require_http_methods(["PUT", "PATCH"])
@json_errors
def cart_update(request):
    form = CartLineForm(parse_json(request))
    if not form.is_valid():
        return error_response("Invalid product_id or quantity")

    data = form.cleaned_data
    item = services.update_cart_item(
        request.user, data['product_id'], data['quantity'], flavor=data['flavor'], size=data['size']
    )
    return JsonResponse(services.serialize_cart_item(item))


@api_login_required
@require_http_methods(["DELETE", "POST"])
@json_errors
def cart_remove(request):
    form = CartRemoveForm(parse_json(request))
    if not form.is_valid():
        return error_response("Invalid product_id")

    data = form.cleaned_data
    removed = services.remove_cart_item(request.user, data['product_id'], flavor=data['flavor'], size=data['size'])
    return JsonResponse({'success': True, 'removed': removed})


# ==================== GUEST CART MERGE ====================

@api_login_required
@require_POST
@json_errors
def cart_merge(request):
    items = parse_json(request).get('cart_items')
    if not items or not isinstance(items, list):
        return error_response("Invalid cart items")

    lines = []
    for raw in items:
        form = CartLineForm(raw if isinstance(raw, dict) else {})
        if not form.is_valid():
            return error_response("Invalid cart item data")
        lines.append(form.cleaned_data)

    cart = services.merge_guest_cart(request.user, lines)
    return JsonResponse({'message': 'Cart merged successfully', 'cart': cart})
