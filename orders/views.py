# orders/views.py
import logging

from django.core.exceptions import PermissionDenied
from django.http import HttpResponse, JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from storefront.api import (
    api_login_required, api_staff_required, error_response, form_error_message, is_admin, json_errors, parse_json,
)
from user.forms import ShippingAddressForm
from . import cancellation_service, refund_service, services
from .forms import CheckoutLineForm, PlaceOrderForm
from .invoice import build_invoice_pdf
from .utils import serialize_cancellation_request, serialize_order, serialize_refund

logger = logging.getLogger(__name__)


# ==================== CHECKOUT ====================

@api_login_required
@require_POST
@json_errors
def checkout(request):
    """Direct checkout with explicit lines and an inline shipping address."""
    data = parse_json(request)
    cart_items = data.get('cart_items')
    if not cart_items or not isinstance(cart_items, list):
        return error_response("Cart is empty")

    address_form = ShippingAddressForm(data.get('shipping_address') or {})
    if not address_form.is_valid():
        return error_response("Invalid shipping address", errors=address_form.errors)

    lines = []
    for raw in cart_items:
        form = CheckoutLineForm(raw if isinstance(raw, dict) else {})
        if not form.is_valid():
            return error_response("Invalid cart item data")
        if form.cleaned_data['quantity'] <= 0:
            return error_response("Quantity must be greater than 0")
        lines.append(form.cleaned_data)

    order = services.create_order(request.user, lines, address_form.cleaned_data)
    return JsonResponse({'message': 'Order created successfully', 'order': serialize_order(order)}, status=201)


@api_login_required
@require_POST
@json_errors
def place_order(request):
    form = PlaceOrderForm(parse_json(request))
    if not form.is_valid():
        return error_response(form_error_message(form))

    data = form.cleaned_data
    order = services.place_order_from_cart(
        request.user, data['address_id'], payment_method=data['payment_method'], coupon_code=data['coupon_code'],
    )
    return JsonResponse({'message': 'Order placed successfully', 'order': serialize_order(order)}, status=201)


# ==================== CUSTOMER ORDERS ====================

@api_login_required
@require_GET
def my_orders(request):
    orders = services.get_user_orders(request.user)
    return JsonResponse([serialize_order(o) for o in orders], safe=False)


@api_login_required
@require_GET
@json_errors
def order_detail(request, order_id):
    order = services.get_order_for_user(order_id, request.user)
    return JsonResponse(serialize_order(order))


@api_login_required
@require_http_methods(["DELETE", "POST"])
@json_errors
def cancel_order(request, order_id):
    order = services.cancel_order(order_id, user=request.user)
    return JsonResponse({'message': 'Order cancelled successfully', 'order': serialize_order(order)})


@api_login_required
@require_GET
@json_errors
def order_invoice(request, order_id):
    order = services.get_order(order_id)
    if order.user_id != request.user.id and not is_admin(request.user):
        raise PermissionDenied("Unauthorized")

    pdf = build_invoice_pdf(order)
    resp = HttpResponse(pdf, content_type="application/pdf")
    resp["Content-Disposition"] = f'attachment; filename="invoice-{order.pk}.pdf"'
    return resp


# ==================== CANCELLATION REQUESTS ====================

@api_login_required
@require_POST
@json_errors
def cancellation_create(request):
    data = parse_json(request)
    reason = data.get('reason')
    if isinstance(reason, list):
        reason = reason[0] if reason else ''
    if not isinstance(reason, str):
        reason = ''

    cancellation = cancellation_service.create_cancellation_request(
        data.get('order_id'), request.user, reason, upi_id=data.get('upi_id'),
    )
    return JsonResponse({
        'success': True,
        'message': 'Cancellation request submitted successfully',
        'data': serialize_cancellation_request(cancellation),
    }, status=201)


@api_login_required
@require_GET
@json_errors
def cancellation_for_order(request, order_id):
    if is_admin(request.user):
        cancellation = cancellation_service.get_request_by_order_id(order_id)
    else:
        cancellation = cancellation_service.get_user_cancellation_request(order_id, request.user)
    data = serialize_cancellation_request(cancellation) if cancellation else None
    return JsonResponse({'success': True, 'data': data})


@api_staff_required
@require_GET
@json_errors
def cancellation_pending(request):
    requests = cancellation_service.get_pending_requests()
    return JsonResponse({'success': True, 'data': [serialize_cancellation_request(r, include_order=True) for r in requests]})


@api_staff_required
@require_GET
@json_errors
def cancellation_all(request):
    requests = cancellation_service.get_all_requests(request.GET.get('status') or None)
    return JsonResponse({'success': True, 'data': [serialize_cancellation_request(r, include_order=True) for r in requests]})


@api_staff_required
@require_http_methods(["PATCH", "POST"])
@json_errors
def cancellation_approve(request, request_id):
    cancellation = cancellation_service.approve_cancellation_request(request_id, request.user)
    refund = getattr(cancellation.order, 'refund', None)
    return JsonResponse({
        'success': True,
        'message': 'Cancellation request approved. Order cancelled.',
        'data': serialize_cancellation_request(cancellation),
        'refund': serialize_refund(refund) if refund else None,
    })


@api_staff_required
@require_http_methods(["PATCH", "POST"])
@json_errors
def cancellation_reject(request, request_id):
    cancellation = cancellation_service.reject_cancellation_request(request_id, request.user)
    return JsonResponse({
        'success': True,
        'message': 'Cancellation request rejected.',
        'data': serialize_cancellation_request(cancellation),
    })


# ==================== REFUNDS ====================

@api_staff_required
@require_GET
def refund_list(request):
    refunds = refund_service.get_all_refunds()
    return JsonResponse([serialize_refund(r, include_order=True) for r in refunds], safe=False)


@api_staff_required
@require_GET
@json_errors
def refund_list_by_status(request, status):
    refunds = refund_service.get_refunds_by_status(status)
    return JsonResponse([serialize_refund(r, include_order=True) for r in refunds], safe=False)


@api_login_required
@require_GET
@json_errors
def refund_for_order(request, order_id):
    refund = refund_service.get_refund_by_order_id(order_id)
    if refund.order.user_id != request.user.id and not is_admin(request.user):
        raise PermissionDenied("Unauthorized")
    return JsonResponse(serialize_refund(refund, include_order=True))


@api_staff_required
@require_http_methods(["PATCH", "POST"])
@json_errors
def refund_update_status(request, order_id):
    refund = refund_service.update_refund_status(order_id, parse_json(request).get('status'))
    return JsonResponse(serialize_refund(refund, include_order=True))
