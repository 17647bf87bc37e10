# coupons/views.py
from datetime import datetime

from django.http import HttpResponse, JsonResponse
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_GET, require_POST

from storefront.api import (
    api_login_required, api_staff_required, error_response, form_error_message, json_errors, money, parse_json,
    timestamp,
)
from orders.utils import serialize_order
from . import services
from .forms import ApplyCouponForm, CouponCodeForm, CouponCreateForm
from .reports import XLSX_CONTENT_TYPE, build_commission_workbook


def serialize_coupon(coupon):
    return {
        'id': coupon.id,
        'code': coupon.code,
        'trainer_name': coupon.trainer_name,
        'trainer_id': coupon.trainer_id,
        'discount_percent': money(coupon.discount_percent),
        'is_active': coupon.is_active,
        'usage_count': coupon.usage_count,
        'max_uses': coupon.max_uses,
        'expiry_date': timestamp(coupon.expiry_date),
        'created_at': timestamp(coupon.created_at),
        'updated_at': timestamp(coupon.updated_at),
    }


def serialize_applied(applied):
    return {
        'id': applied.id,
        'coupon_id': applied.coupon_id,
        'code': applied.coupon.code,
        'order_id': applied.order_id,
        'user_id': applied.user_id,
        'discount_amount': money(applied.discount_amount),
        'trainer_name': applied.trainer_name,
        'commission_note': applied.commission_note,
        'applied_date': timestamp(applied.applied_date),
    }


def _serialize_report(report):
    return {
        'trainer_name': report['trainer_name'],
        'report_date': timestamp(report['report_date']),
        'total_coupons_issued': report['total_coupons_issued'],
        'total_usages': report['total_usages'],
        'total_discount_given': money(report['total_discount_given']),
        'coupon_details': [
            {
                'code': d['code'],
                'discount_percent': money(d['discount_percent']),
                'usage_count': d['usage_count'],
                'total_discount_amount': money(d['total_discount_amount']),
                'is_active': d['is_active'],
            }
            for d in report['coupon_details']
        ],
        'commission_note': report['commission_note'],
    }


# ==================== ADMIN ====================

@api_staff_required
@require_POST
@json_errors
def coupon_create(request):
    form = CouponCreateForm(parse_json(request))
    if not form.is_valid():
        return error_response(form_error_message(form, with_field=False))

    data = form.cleaned_data
    coupon = services.create_coupon(
        data['trainer_name'],
        created_by=request.user,
        discount_percent=data['discount_percent'] if data['discount_percent'] is not None else 10,
        trainer_id=data['trainer_id'],
        max_uses=data['max_uses'],
        expiry_date=data['expiry_date'],
    )
    return JsonResponse(
        {'success': True, 'message': 'Coupon created successfully', 'coupon': serialize_coupon(coupon)},
        status=201,
    )


@api_staff_required
@require_GET
def coupon_list(request):
    is_active = request.GET.get('is_active')
    if is_active is not None and is_active != '':
        is_active = is_active.lower() in ('1', 'true', 'yes')
    else:
        is_active = None

    coupons = services.get_all_coupons(is_active=is_active, trainer_name=request.GET.get('trainer_name', '').strip())
    data = [serialize_coupon(c) for c in coupons]
    return JsonResponse({'success': True, 'coupons': data, 'total': len(data)})


@api_staff_required
@require_GET
@json_errors
def coupon_detail(request, coupon_id):
    coupon, recent = services.get_coupon(coupon_id)
    data = serialize_coupon(coupon)
    data['applied_coupons'] = [serialize_applied(a) for a in recent]
    return JsonResponse({'success': True, 'coupon': data})


@api_staff_required
@require_POST
@json_errors
def coupon_deactivate(request, coupon_id):
    coupon = services.deactivate_coupon(coupon_id)
    return JsonResponse({'success': True, 'message': 'Coupon deactivated successfully', 'coupon': serialize_coupon(coupon)})


@api_staff_required
@require_POST
@json_errors
def coupon_reactivate(request, coupon_id):
    coupon = services.reactivate_coupon(coupon_id)
    return JsonResponse({'success': True, 'message': 'Coupon reactivated successfully', 'coupon': serialize_coupon(coupon)})


@api_staff_required
@require_GET
@json_errors
def trainer_commission_report(request, trainer_name):
    report = services.get_trainer_commission_report(trainer_name)
    return JsonResponse({'success': True, 'report': _serialize_report(report)})


@api_staff_required
@require_GET
@json_errors
def trainer_commission_export(request, trainer_name):
    report = services.get_trainer_commission_report(trainer_name)
    wb = build_commission_workbook(report)

    response = HttpResponse(content_type=XLSX_CONTENT_TYPE)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    safe_name = "".join(ch for ch in trainer_name if ch.isalnum()) or "trainer"
    response["Content-Disposition"] = f'attachment; filename="Commission_{safe_name}_{stamp}.xlsx"'
    wb.save(response)
    return response


@api_staff_required
@require_GET
@json_errors
def trainer_applied_coupons(request, trainer_name):
    from_date = parse_date(request.GET.get('from_date', '') or '')
    to_date = parse_date(request.GET.get('to_date', '') or '')
    result = services.get_applied_coupons_by_trainer(trainer_name, from_date=from_date, to_date=to_date)
    return JsonResponse({
        'success': True,
        'trainer': result['trainer'],
        'applied_coupons': [serialize_applied(a) for a in result['applied_coupons']],
        'total_discount': money(result['total_discount']),
        'total_usages': result['total_usages'],
    })


# ==================== CUSTOMER ====================

@require_POST
@json_errors
def coupon_validate(request):
    """Always 200 for a well-formed request; ``is_valid`` carries the verdict."""
    form = CouponCodeForm(parse_json(request))
    if not form.is_valid():
        return error_response(form_error_message(form, with_field=False))

    is_valid, error, coupon = services.validate_coupon(form.cleaned_data['coupon_code'])
    payload = {'success': True, 'is_valid': is_valid}
    if is_valid:
        payload['coupon'] = {
            'code': coupon.code,
            'trainer_name': coupon.trainer_name,
            'discount_percent': money(coupon.discount_percent),
        }
    else:
        payload['error'] = error
    return JsonResponse(payload)


@api_login_required
@require_POST
@json_errors
def coupon_apply(request):
    form = ApplyCouponForm(parse_json(request))
    if not form.is_valid():
        return error_response(form_error_message(form, with_field=False))

    applied, order = services.apply_coupon_to_existing_order(
        form.cleaned_data['coupon_code'], form.cleaned_data['order_id'], request.user,
    )
    return JsonResponse({
        'success': True,
        'message': 'Coupon applied successfully',
        'coupon': {
            'code': applied.coupon.code,
            'trainer_name': applied.trainer_name,
            'discount_percent': money(applied.coupon.discount_percent),
        },
        'discount_amount': money(applied.discount_amount),
        'order': serialize_order(order, include_items=False),
    })
