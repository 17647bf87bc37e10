# orders/emails.py
"""Plain-text customer notifications. A failed send is logged, never raised."""

import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


def _customer_name(order):
    user = order.user
    return user.first_name or user.get_username()


def _send(order, subject, body):
    recipient = order.user.email
    if not recipient:
        logger.warning("Order %s: user %s has no email, skipping '%s'", order.pk, order.user_id, subject)
        return False
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [recipient], fail_silently=False)
    except Exception:
        logger.error("Failed to send '%s' for order %s", subject, order.pk, exc_info=True)
        return False
    logger.info("Sent '%s' to %s", subject, recipient)
    return True


def send_order_confirmation(order):
    lines = [
        f"Hi {_customer_name(order)},",
        "",
        f"Thank you for shopping with {settings.STORE_NAME}. Your order #{order.pk} has been placed.",
        "",
    ]
    for item in order.items.all():
        variant = " / ".join(v for v in (item.flavor, item.size) if v)
        label = f"{item.product_name} ({variant})" if variant else item.product_name
        lines.append(f"  {label} x {item.quantity}  ₹{item.line_total:.2f}")
    lines += [
        "",
        f"Total: ₹{order.total_amount:.2f}",
        f"Payment: {order.get_payment_method_display()}",
    ]
    return _send(order, f"Order Confirmation - Order #{order.pk}", "\n".join(lines))


def send_order_shipped(order):
    body = (
        f"Hi {_customer_name(order)},\n\n"
        f"Good news! Your order #{order.pk} has been shipped and is on its way.\n"
    )
    return _send(order, f"Your Order is Shipped - Order #{order.pk}", body)


def send_order_delivered(order):
    body = (
        f"Hi {_customer_name(order)},\n\n"
        f"Your order #{order.pk} has been delivered. We hope you enjoy it!\n"
        f"If something is wrong you can request a cancellation within "
        f"{settings.CANCELLATION_WINDOW_DAYS} days.\n"
    )
    return _send(order, f"Order Delivered - Order #{order.pk}", body)


def send_cancellation_approved(cancellation, refund=None):
    order = cancellation.order
    body = f"Hi {_customer_name(order)},\n\nYour cancellation request for order #{order.pk} has been approved.\n"
    if refund is not None:
        body += f"A refund of ₹{refund.refund_amount:.2f} has been initiated.\n"
    return _send(order, f"Cancellation Approved - Order #{order.pk}", body)


def send_cancellation_rejected(cancellation):
    order = cancellation.order
    body = (
        f"Hi {_customer_name(order)},\n\n"
        f"After review, your cancellation request for order #{order.pk} could not be approved. "
        f"Please contact support if you have any questions.\n"
    )
    return _send(order, f"Cancellation Request Update - Order #{order.pk}", body)
