# payments/gateway.py
"""Thin wrapper around the Razorpay SDK: orders, refunds and signature checks."""

import hashlib
import hmac
import logging
from decimal import Decimal, ROUND_HALF_UP

import razorpay
from django.conf import settings

logger = logging.getLogger(__name__)

# Initialize Razorpay client
razorpay_client = razorpay.Client(auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET))


class PaymentGatewayError(Exception):
    """Razorpay rejected the call or could not be reached."""


def to_paise(amount):
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def expected_signature(razorpay_order_id, razorpay_payment_id):
    return hmac.new(
        settings.RAZORPAY_KEY_SECRET.encode('utf-8'),
        f"{razorpay_order_id}|{razorpay_payment_id}".encode('utf-8'),
        hashlib.sha256,
    ).hexdigest()


def verify_signature(razorpay_order_id, razorpay_payment_id, razorpay_signature):
    generated = expected_signature(razorpay_order_id, razorpay_payment_id)
    return hmac.compare_digest(generated, razorpay_signature or '')


def create_gateway_order(amount_paise, receipt, notes=None):
    try:
        gateway_order = razorpay_client.order.create({
            'amount': amount_paise,
            'currency': settings.PAYMENT_CURRENCY,
            'receipt': receipt,
            'payment_capture': 1,
            'notes': notes or {},
        })
    except Exception as e:
        logger.error("Razorpay order creation failed for receipt %s", receipt, exc_info=True)
        raise PaymentGatewayError(str(e)) from e

    logger.info("Razorpay order %s created (%s paise, receipt %s)", gateway_order['id'], amount_paise, receipt)
    return gateway_order


def refund_payment(payment_id, amount, notes=None):
    """Refund ``amount`` rupees against a captured payment."""
    try:
        refund = razorpay_client.payment.refund(payment_id, {
            'amount': to_paise(amount),
            'speed': 'normal',
            'notes': notes or {},
        })
    except Exception as e:
        raise PaymentGatewayError(str(e)) from e

    logger.info("Razorpay refund %s for payment %s (status %s)", refund.get('id'), payment_id, refund.get('status'))
    return refund
