# admin_side/views.py
import logging

from django.core.paginator import Paginator
from django.http import HttpResponse, JsonResponse
from django.views.decorators.cache import never_cache
from django.views.decorators.http import require_GET, require_http_methods

from storefront.api import api_staff_required, error_response, json_errors, parse_json
from orders import services as order_services
from orders.forms import StatusForm
from orders.invoice import build_invoice_pdf
from orders.utils import serialize_order
from user.models import get_profile

logger = logging.getLogger(__name__)

ORDERS_PER_PAGE = 20


def _user_summary(user):
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'name': user.get_full_name() or user.username,
        'phone': get_profile(user).phone,
    }


# ============================================
# ORDERS
# ============================================
@api_staff_required
@require_GET
@never_cache
@json_errors
def order_list(request):
    orders = order_services.get_all_orders(request.GET.get('status') or None)

    paginator = Paginator(orders, ORDERS_PER_PAGE)
    page = paginator.get_page(request.GET.get('page'))

    data = []
    for order in page:
        item = serialize_order(order)
        item['user'] = _user_summary(order.user)
        data.append(item)

    return JsonResponse({
        'success': True,
        'orders': data,
        'page': page.number,
        'num_pages': paginator.num_pages,
        'total': paginator.count,
    })


@api_staff_required
@require_GET
@json_errors
def order_detail(request, order_id):
    order = order_services.get_order(order_id)
    data = serialize_order(order)
    data['user'] = _user_summary(order.user)
    return JsonResponse({'success': True, 'order': data})


@api_staff_required
@require_http_methods(["PATCH", "PUT", "POST"])
@json_errors
def order_status_update(request, order_id):
    form = StatusForm(parse_json(request))
    if not form.is_valid():
        return error_response("Invalid order status")

    order = order_services.update_order_status(order_id, form.cleaned_data['status'])
    logger.info("Admin %s set order %s to %s", request.user.pk, order.pk, order.status)
    return JsonResponse({'success': True, 'message': 'Order status updated', 'order': serialize_order(order)})


# ============================================
# INVOICE
# ============================================
@api_staff_required
@require_GET
@json_errors
def order_invoice(request, order_id):
    order = order_services.get_order(order_id)
    response = HttpResponse(build_invoice_pdf(order), content_type="application/pdf")
    response["Content-Disposition"] = f'attachment; filename="invoice-{order.pk}.pdf"'
    return response
