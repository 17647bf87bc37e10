# orders/cancellation_service.py
"""
Customer cancellation requests and their review by staff.

A request can be raised for any order that is not already cancelled; a
delivered order only within CANCELLATION_WINDOW_DAYS of delivery. Approving
a request cancels the order and, when money was collected, opens a refund.
"""

import logging

from django.conf import settings
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.utils import timezone

from . import emails
from .models import Order, OrderCancellationRequest
from .refund_service import create_refund_for_approved_cancellation
from .services import money_collected, restore_stock

logger = logging.getLogger(__name__)


def _with_order(qs):
    return qs.select_related('order', 'order__address', 'order__user').prefetch_related('order__items')


def create_cancellation_request(order_id, user, reason, upi_id=None):
    reason = (reason or '').strip()
    if not order_id or user is None or not reason:
        raise ValidationError("Order ID, User ID, and reason are required")

    min_length = settings.CANCELLATION_REASON_MIN_LENGTH
    if len(reason) < min_length:
        raise ValidationError(
            f"Reason must be at least {min_length} letters. Current: {len(reason)} letters."
        )

    with transaction.atomic():
        try:
            order = Order.objects.select_for_update().get(pk=order_id)
        except Order.DoesNotExist:
            raise Order.DoesNotExist("Order not found")

        if order.user_id != user.id:
            raise PermissionDenied("Unauthorized")
        if order.status == Order.Status.CANCELLED:
            raise ValidationError("Order is already cancelled")
        if not order.within_cancellation_window():
            raise ValidationError(
                f"Cancellation window of {settings.CANCELLATION_WINDOW_DAYS} days after delivery has passed"
            )
        if OrderCancellationRequest.objects.filter(order=order).exists():
            raise ValidationError("Cancellation request already exists for this order")

        request = OrderCancellationRequest.objects.create(
            order=order,
            user=user,
            reason=reason,
            upi_id=(upi_id or '').strip() or None,
        )

    logger.info("Cancellation request %s raised for order %s by user %s", request.pk, order.pk, user.pk)
    return request


def parse_request_status(status):
    if status not in OrderCancellationRequest.Status.values:
        raise ValidationError("Invalid cancellation status")
    return status


def get_pending_requests():
    return _with_order(OrderCancellationRequest.objects.filter(status=OrderCancellationRequest.Status.PENDING))


def get_all_requests(status=None):
    qs = OrderCancellationRequest.objects.all()
    if status:
        qs = qs.filter(status=parse_request_status(status))
    return _with_order(qs)


def get_request_by_order_id(order_id):
    return _with_order(OrderCancellationRequest.objects.filter(order_id=order_id)).first()


def get_user_cancellation_request(order_id, user):
    request = get_request_by_order_id(order_id)
    if request is not None and request.user_id != user.id:
        raise PermissionDenied("Unauthorized")
    return request


def _lock_pending(request_id):
    try:
        request = OrderCancellationRequest.objects.select_for_update().select_related('order').get(pk=request_id)
    except OrderCancellationRequest.DoesNotExist:
        raise OrderCancellationRequest.DoesNotExist("Cancellation request not found")
    if request.status != OrderCancellationRequest.Status.PENDING:
        raise ValidationError(f"Cancellation request is already {request.status.lower()}")
    return request


def approve_cancellation_request(request_id, admin):
    refund = None
    with transaction.atomic():
        request = _lock_pending(request_id)
        order = Order.objects.select_for_update().get(pk=request.order_id)

        request.status = OrderCancellationRequest.Status.APPROVED
        request.decided_by = admin
        request.decided_at = timezone.now()
        request.save(update_fields=['status', 'decided_by', 'decided_at', 'updated_at'])

        was_delivered = order.status == Order.Status.DELIVERED
        if order.status != Order.Status.CANCELLED:
            if not was_delivered:
                restore_stock(order, user=admin)
            order.status = Order.Status.CANCELLED
            order.cancelled_at = timezone.now()
            order.save(update_fields=['status', 'cancelled_at', 'updated_at'])

        if money_collected(order, was_delivered) and not hasattr(order, 'refund'):
            refund = create_refund_for_approved_cancellation(order.pk, request.reason, upi_id=request.upi_id)

        transaction.on_commit(lambda: emails.send_cancellation_approved(request, refund))

    logger.info("Cancellation request %s approved by %s (refund: %s)", request.pk, admin.pk, refund and refund.pk)
    return request


def reject_cancellation_request(request_id, admin):
    with transaction.atomic():
        request = _lock_pending(request_id)
        request.status = OrderCancellationRequest.Status.REJECTED
        request.decided_by = admin
        request.decided_at = timezone.now()
        request.save(update_fields=['status', 'decided_by', 'decided_at', 'updated_at'])
        transaction.on_commit(lambda: emails.send_cancellation_rejected(request))

    logger.info("Cancellation request %s rejected by %s", request.pk, admin.pk)
    return request
