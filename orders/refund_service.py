# orders/refund_service.py

import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from payments.gateway import PaymentGatewayError, refund_payment
from .models import Order, OrderRefund

logger = logging.getLogger(__name__)


@transaction.atomic
def create_refund_for_approved_cancellation(order_id, reason, upi_id=None):
    """
    Record an INITIATED refund of the full order total.

    Rules:
    - Razorpay-paid order with a payment id -> refund requested from Razorpay
      once the surrounding transaction commits
    - Anything else (COD, or gateway failure) -> stays INITIATED and is paid
      out manually to the customer's UPI id

    Returns the OrderRefund.
    """
    try:
        order = Order.objects.select_for_update().get(pk=order_id)
    except Order.DoesNotExist:
        raise Order.DoesNotExist("Order not found")

    if OrderRefund.objects.filter(order=order).exists():
        raise ValidationError("Refund already exists for this order")

    refund = OrderRefund.objects.create(
        order=order,
        refund_amount=order.total_amount,
        reason=reason or '',
        upi_id=upi_id or None,
        status=OrderRefund.Status.INITIATED,
    )
    logger.info("Refund %s initiated for order %s (₹%s, upi=%s)", refund.pk, order.pk, refund.refund_amount, upi_id)

    if order.is_online and order.razorpay_payment_id:
        transaction.on_commit(lambda: _refund_razorpay(order, refund))

    return refund


def _refund_razorpay(order, refund):
    """Refund via Razorpay API; on failure the refund is left for manual handling."""
    try:
        gateway_refund = refund_payment(
            order.razorpay_payment_id,
            refund.refund_amount,
            notes={'order_id': order.pk, 'reason': refund.reason[:200]},
        )
    except PaymentGatewayError:
        logger.error(
            "Razorpay refund failed for order %s; refund %s left INITIATED for manual processing",
            order.pk, refund.pk, exc_info=True,
        )
        return refund

    refund.razorpay_refund_id = gateway_refund.get('id')
    refund.save(update_fields=['razorpay_refund_id', 'updated_at'])
    logger.info("Razorpay refund %s created for order %s", refund.razorpay_refund_id, order.pk)
    return refund


def get_all_refunds():
    return OrderRefund.objects.select_related('order').order_by('-initiated_at')


def parse_refund_status(status):
    if not status:
        raise ValidationError("Refund status is required")
    if status not in OrderRefund.Status.values:
        raise ValidationError("Invalid refund status")
    return status


def get_refunds_by_status(status):
    return get_all_refunds().filter(status=parse_refund_status(status))


def get_refund_by_order_id(order_id):
    try:
        return OrderRefund.objects.select_related('order').get(order_id=order_id)
    except OrderRefund.DoesNotExist:
        raise OrderRefund.DoesNotExist("Refund not found for this order")


def update_refund_status(order_id, status):
    status = parse_refund_status(status)
    with transaction.atomic():
        try:
            refund = OrderRefund.objects.select_for_update().get(order_id=order_id)
        except OrderRefund.DoesNotExist:
            raise OrderRefund.DoesNotExist("Refund not found for this order")

        refund.status = status
        fields = ['status', 'updated_at']
        if status == OrderRefund.Status.REFUND_COMPLETED and refund.completed_at is None:
            refund.completed_at = timezone.now()
            fields.append('completed_at')
        refund.save(update_fields=fields)

    logger.info("Refund for order %s -> %s", order_id, status)
    return refund
