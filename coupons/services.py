# coupons/services.py
"""
Trainer coupons: creation, validation, application to orders and the
reports used to work out trainer commission offline.
"""

import logging
import random
import string
from decimal import Decimal, InvalidOperation

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.db.models import Count, F, Sum
from django.utils import timezone

from .models import AppliedCoupon, Coupon

logger = logging.getLogger(__name__)

RECENT_USAGE_LIMIT = 50


def format_percent(value):
    """10.00 -> '10', 12.50 -> '12.5'"""
    return format(Decimal(value).normalize(), 'f')


def generate_coupon_code(trainer_name, discount_percent=10):
    clean_name = "".join(trainer_name.split()).upper()
    return f"{clean_name}_{format_percent(discount_percent)}"


def _random_suffix(length=6):
    return "".join(random.choices(string.ascii_uppercase + string.digits, k=length))


# ==================== CREATION ====================

def create_coupon(trainer_name, created_by=None, discount_percent=10, trainer_id=None, max_uses=None, expiry_date=None):
    trainer_name = (trainer_name or '').strip()
    if not trainer_name:
        raise ValidationError("Trainer name is required")

    try:
        discount_percent = Decimal(str(discount_percent))
    except InvalidOperation:
        raise ValidationError("Discount percent must be between 0 and 100")
    if discount_percent < 0 or discount_percent > 100:
        raise ValidationError("Discount percent must be between 0 and 100")

    if max_uses is not None and max_uses <= 0:
        raise ValidationError("Max uses must be greater than 0")

    if expiry_date is not None and expiry_date <= timezone.now():
        raise ValidationError("Expiry date must be in the future")

    code = generate_coupon_code(trainer_name, discount_percent)
    if Coupon.objects.filter(code=code).exists():
        code = f"{code}_{_random_suffix()}"

    coupon = Coupon.objects.create(
        code=code,
        trainer_name=trainer_name,
        trainer_id=trainer_id or None,
        discount_percent=discount_percent,
        max_uses=max_uses,
        expiry_date=expiry_date,
        is_active=True,
        usage_count=0,
        created_by=created_by,
    )
    logger.info("Coupon created: %s for trainer %s", coupon.code, trainer_name)
    return coupon


# ==================== VALIDATION & APPLICATION ====================

def validate_coupon(code):
    """Return (is_valid, error, coupon)."""
    code = (code or '').strip()
    if not code:
        return False, "Coupon code is required", None

    coupon = Coupon.objects.filter(code__iexact=code).first()
    if coupon is None:
        return False, "Invalid coupon code", None

    ok, error = coupon.is_valid()
    if not ok:
        return False, error, None
    return True, None, coupon


def apply_coupon_to_order(code, order, user, cart_total):
    """
    Record the coupon against ``order`` and bump its usage count.
    Raises ValidationError when the coupon cannot be used.
    """
    with transaction.atomic():
        is_valid, error, coupon = validate_coupon(code)
        if not is_valid:
            raise ValidationError(error)

        # Re-check under lock so concurrent checkouts can't exceed max_uses
        coupon = Coupon.objects.select_for_update().get(pk=coupon.pk)
        ok, error = coupon.is_valid()
        if not ok:
            raise ValidationError(error)

        discount = coupon.calculate_discount(cart_total)
        applied = AppliedCoupon.objects.create(
            coupon=coupon,
            order=order,
            user=user,
            discount_amount=discount,
            trainer_name=coupon.trainer_name,
            commission_note=f"{format_percent(coupon.discount_percent)}% discount = ₹{discount:.2f} discount given",
        )
        Coupon.objects.filter(pk=coupon.pk).update(usage_count=F('usage_count') + 1)

    logger.info("Coupon applied: %s to order %s | Discount: ₹%.2f", coupon.code, order.pk, discount)
    return applied


def apply_coupon_to_existing_order(code, order_id, user):
    """Apply a coupon to one of the user's unpaid PENDING orders and reprice it."""
    from orders.models import Order

    with transaction.atomic():
        try:
            order = Order.objects.select_for_update().get(pk=order_id)
        except Order.DoesNotExist:
            raise Order.DoesNotExist("Order not found")
        if order.user_id != user.id:
            raise PermissionDenied("Unauthorized")
        if order.status != Order.Status.PENDING or order.is_paid:
            raise ValidationError("Coupons can only be applied to unpaid pending orders")
        if order.applied_coupons.exists():
            raise ValidationError("A coupon has already been applied to this order")

        applied = apply_coupon_to_order(code, order, user, order.total_amount)
        order.coupon_discount = applied.discount_amount
        order.total_amount = order.total_amount - applied.discount_amount
        order.save(update_fields=['coupon_discount', 'total_amount', 'updated_at'])

    return applied, order


# ==================== ADMIN ====================

def get_all_coupons(is_active=None, trainer_name=None):
    coupons = Coupon.objects.all()
    if is_active is not None:
        coupons = coupons.filter(is_active=is_active)
    if trainer_name:
        coupons = coupons.filter(trainer_name__icontains=trainer_name)
    return coupons.order_by('-created_at')


def get_coupon(coupon_id):
    try:
        coupon = Coupon.objects.get(pk=coupon_id)
    except Coupon.DoesNotExist:
        raise Coupon.DoesNotExist("Coupon not found")
    recent = list(coupon.applied_coupons.order_by('-applied_date')[:RECENT_USAGE_LIMIT])
    return coupon, recent


def _set_active(coupon_id, active):
    try:
        coupon = Coupon.objects.get(pk=coupon_id)
    except Coupon.DoesNotExist:
        raise Coupon.DoesNotExist("Coupon not found")
    coupon.is_active = active
    coupon.save(update_fields=['is_active', 'updated_at'])
    logger.info("Coupon %s %s", coupon.code, "reactivated" if active else "deactivated")
    return coupon


def deactivate_coupon(coupon_id):
    return _set_active(coupon_id, False)


def reactivate_coupon(coupon_id):
    return _set_active(coupon_id, True)


# ==================== REPORTING ====================

def get_applied_coupons_by_trainer(trainer_name, from_date=None, to_date=None):
    applied = AppliedCoupon.objects.filter(trainer_name__icontains=trainer_name)
    if from_date and to_date:
        applied = applied.filter(applied_date__date__gte=from_date, applied_date__date__lte=to_date)
    applied = applied.select_related('coupon', 'order').order_by('-applied_date')

    applied = list(applied)
    return {
        'trainer': trainer_name,
        'applied_coupons': applied,
        'total_discount': sum((a.discount_amount for a in applied), Decimal('0.00')),
        'total_usages': len(applied),
    }


def get_trainer_commission_report(trainer_name):
    coupons = (
        Coupon.objects.filter(trainer_name__icontains=trainer_name)
        .annotate(
            used=Count('applied_coupons'),
            discount_total=Sum('applied_coupons__discount_amount'),
        )
        .order_by('code')
    )

    details = [
        {
            'code': c.code,
            'trainer_name': c.trainer_name,
            'discount_percent': c.discount_percent,
            'usage_count': c.used,
            'total_discount_amount': c.discount_total or Decimal('0.00'),
            'is_active': c.is_active,
        }
        for c in coupons
    ]
    return {
        'trainer_name': trainer_name,
        'report_date': timezone.now(),
        'total_coupons_issued': len(details),
        'total_usages': sum(d['usage_count'] for d in details),
        'total_discount_given': sum((d['total_discount_amount'] for d in details), Decimal('0.00')),
        'coupon_details': details,
        'commission_note': "This data can be used to calculate trainer commission offline",
    }
