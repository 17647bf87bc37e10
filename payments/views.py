# payments/views.py
from django.http import JsonResponse
from django.views.decorators.http import require_POST

from storefront.api import api_login_required, error_response, json_errors, parse_json
from . import services
from .gateway import PaymentGatewayError


@api_login_required
@require_POST
@json_errors
def create_order(request):
    data = parse_json(request)
    try:
        result = services.create_razorpay_order(request.user, data.get('amount'), data.get('order_id'))
    except PaymentGatewayError:
        return error_response("Failed to create payment order", status=502)
    return JsonResponse(result)


@api_login_required
@require_POST
@json_errors
def verify_payment(request):
    data = parse_json(request)
    result = services.verify_razorpay_payment(
        request.user,
        data.get('razorpay_order_id'),
        data.get('razorpay_payment_id'),
        data.get('razorpay_signature'),
        data.get('order_id'),
    )
    return JsonResponse(result)
