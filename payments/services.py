# payments/services.py
import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction

from orders import emails
from orders.models import Order, OrderRefund
from orders.refund_service import create_refund_for_approved_cancellation
from orders.services import clear_cart_after_payment, get_order, get_order_for_user, mark_order_paid
from .gateway import create_gateway_order, to_paise, verify_signature
from .models import Payment

logger = logging.getLogger(__name__)


def _parse_amount(amount):
    if amount is None or isinstance(amount, bool):
        raise ValidationError("Invalid amount")
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise ValidationError("Invalid amount")
    if not value.is_finite() or value <= 0:
        raise ValidationError("Invalid amount")
    return value


def create_razorpay_order(user, amount, order_id):
    """Raise a Razorpay order for a PENDING store order and return checkout data."""
    amount = _parse_amount(amount)
    if not order_id:
        raise ValidationError("Order ID is required")

    order = get_order_for_user(order_id, user)
    if order.status == Order.Status.CANCELLED:
        raise ValidationError("Cannot pay for a cancelled order")
    if order.is_paid:
        raise ValidationError("Order is already paid")

    amount_paise = to_paise(amount)
    if amount_paise != to_paise(order.total_amount):
        raise ValidationError("Amount does not match order total")

    gateway_order = create_gateway_order(
        amount_paise,
        receipt=order.pk,
        notes={'user_id': str(user.pk), 'order_id': order.pk},
    )

    with transaction.atomic():
        Payment.objects.create(
            order=order,
            user=user,
            razorpay_order_id=gateway_order['id'],
            amount=amount_paise,
            currency=settings.PAYMENT_CURRENCY,
        )
        Order.objects.filter(pk=order.pk).update(razorpay_order_id=gateway_order['id'])

    return {
        'order_id': gateway_order['id'],
        'amount': gateway_order.get('amount', amount_paise),
        'currency': gateway_order.get('currency', settings.PAYMENT_CURRENCY),
        'key_id': settings.RAZORPAY_KEY_ID,
        'receipt': order.pk,
    }


def verify_razorpay_payment(user, razorpay_order_id, razorpay_payment_id, razorpay_signature, order_id):
    """
    Confirm a checkout payment for one of the user's orders.

    The Razorpay order must be one raised for this store order. A payment
    that arrives after the order was cancelled is recorded and refunded,
    and the verification is rejected.
    """
    if not (razorpay_order_id and razorpay_payment_id and razorpay_signature):
        raise ValidationError("Missing payment details")
    if not order_id:
        raise ValidationError("Order ID is required")

    order = get_order_for_user(order_id, user)

    if not Payment.objects.filter(order=order, razorpay_order_id=razorpay_order_id).exists():
        logger.warning("Razorpay order %s was not raised for order %s", razorpay_order_id, order.pk)
        raise ValidationError("Payment does not belong to this order")

    if not verify_signature(razorpay_order_id, razorpay_payment_id, razorpay_signature):
        Payment.objects.filter(order=order, razorpay_order_id=razorpay_order_id).update(
            status=Payment.Status.FAILED, razorpay_payment_id=razorpay_payment_id,
        )
        logger.warning("Invalid Razorpay signature for order %s (payment %s)", order.pk, razorpay_payment_id)
        raise ValidationError("Invalid payment signature")

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)

        if order.is_paid:
            if order.razorpay_payment_id == razorpay_payment_id:
                if order.status == Order.Status.CANCELLED:
                    raise ValidationError("Order was cancelled. The payment will be refunded")
                logger.info("Payment %s for order %s already verified", razorpay_payment_id, order.pk)
                return {'success': True, 'message': 'Payment verified successfully', 'payment_id': razorpay_payment_id}
            logger.warning(
                "Order %s already paid by %s, rejecting payment %s",
                order.pk, order.razorpay_payment_id, razorpay_payment_id,
            )
            raise ValidationError("Order is already paid")

        Payment.objects.filter(order=order, razorpay_order_id=razorpay_order_id).update(
            status=Payment.Status.PAID,
            razorpay_payment_id=razorpay_payment_id,
            razorpay_signature=razorpay_signature,
        )
        mark_order_paid(order, razorpay_order_id, razorpay_payment_id, razorpay_signature)

        cancelled = order.status == Order.Status.CANCELLED
        if cancelled and not OrderRefund.objects.filter(order=order).exists():
            create_refund_for_approved_cancellation(order.pk, "Payment received after the order was cancelled")

    if cancelled:
        logger.warning("Payment %s arrived for cancelled order %s; refund initiated", razorpay_payment_id, order.pk)
        raise ValidationError("Order was cancelled. The payment will be refunded")

    logger.info("Payment verified for order %s. Clearing cart for user %s", order.pk, user.pk)

    # Neither of these may fail a verified payment
    clear_cart_after_payment(user)
    if not emails.send_order_confirmation(get_order(order.pk)):
        logger.warning("Order confirmation mail not sent for order %s, payment was verified", order.pk)

    return {'success': True, 'message': 'Payment verified successfully', 'payment_id': razorpay_payment_id}
