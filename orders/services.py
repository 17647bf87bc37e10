# orders/services.py
"""
Order lifecycle: placing orders (direct checkout or from the saved cart),
status changes by staff, and customer cancellation of pending orders.

Totals are always computed from current product prices:

    subtotal = sum(base_price * qty)
    discount = sum(discount_amount * qty)
    gst      = sum(gst_on_selling_price * qty)
    total    = subtotal - discount + gst - coupon_discount
"""

import logging
from decimal import Decimal

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.utils import timezone

from cart.models import CartItem
from cart.services import clear_cart
from products.models import Product
from user.models import Address
from . import emails
from .idgen import generate_order_id
from .models import Order, OrderAddress, OrderItem, OrderRefund

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')

# Timestamp stamped the first time an order reaches a status
STATUS_TIMESTAMPS = {
    Order.Status.SHIPPED: 'shipped_at',
    Order.Status.DELIVERED: 'delivered_at',
    Order.Status.CANCELLED: 'cancelled_at',
}


# ==================== LOOKUPS ====================

def get_order(order_id):
    try:
        return Order.objects.select_related('address', 'user').prefetch_related('items').get(pk=order_id)
    except Order.DoesNotExist:
        raise Order.DoesNotExist("Order not found")


def get_order_for_user(order_id, user):
    order = get_order(order_id)
    if order.user_id != user.id:
        raise PermissionDenied("Unauthorized")
    return order


def get_user_orders(user):
    return (
        Order.objects.filter(user=user)
        .select_related('address')
        .prefetch_related('items')
        .order_by('-created_at')
    )


def parse_status(status):
    if status not in Order.Status.values:
        raise ValidationError("Invalid order status")
    return status


def get_all_orders(status=None):
    orders = Order.objects.select_related('address', 'user').prefetch_related('items')
    if status:
        orders = orders.filter(status=parse_status(status))
    return orders.order_by('-created_at')


# ==================== PRICING & STOCK ====================

def _check_stock(product, quantity):
    if product.stock_quantity < quantity:
        raise ValidationError(
            f"Insufficient stock for {product.name}. "
            f"Available: {product.stock_quantity}, Requested: {quantity}"
        )


def compute_totals(lines):
    """lines: iterable of dicts with 'product' and 'quantity'."""
    subtotal = discount = gst = ZERO
    for line in lines:
        product, qty = line['product'], line['quantity']
        subtotal += product.base_price * qty
        discount += product.discount_amount * qty
        gst += product.gst_amount * qty
    return {
        'subtotal': subtotal,
        'discount': discount,
        'gst_amount': gst,
        'total_amount': subtotal - discount + gst,
    }


def _create_order_records(user, lines, shipping, payment_method):
    """
    Runs inside the caller's transaction: locks the products, re-checks stock,
    writes the order with its address snapshot and items, and takes the stock.
    """
    product_ids = sorted({line['product'].pk for line in lines})
    locked = Product.objects.select_for_update().in_bulk(product_ids)

    requested = {}
    for line in lines:
        requested[line['product'].pk] = requested.get(line['product'].pk, 0) + line['quantity']
    for pk, qty in requested.items():
        _check_stock(locked[pk], qty)

    for line in lines:
        line['product'] = locked[line['product'].pk]
    totals = compute_totals(lines)

    order = Order.objects.create(
        id=generate_order_id(),
        user=user,
        status=Order.Status.PENDING,
        payment_method=payment_method,
        **totals,
    )
    OrderAddress.objects.create(
        order=order,
        user=user,
        name=shipping['name'],
        phone=shipping['phone'],
        address=shipping['address'],
        city=shipping['city'],
        state=shipping.get('state') or None,
        pincode=shipping['pincode'],
    )
    OrderItem.objects.bulk_create([
        OrderItem(
            order=order,
            product=line['product'],
            product_name=line['product'].name,
            quantity=line['quantity'],
            price=line['product'].final_price,
            flavor=line.get('flavor') or '',
            size=line.get('size') or '',
        )
        for line in lines
    ])
    for pk, qty in requested.items():
        locked[pk].reserve_stock(qty, user=user, reference=order.pk)

    return order


def restore_stock(order, user=None):
    for item in order.items.select_related('product'):
        product = Product.objects.select_for_update().get(pk=item.product_id)
        product.release_stock(item.quantity, user=user, reference=order.pk)


def money_collected(order, was_delivered):
    """Online orders are paid upfront; COD money is only collected on delivery."""
    if order.is_online:
        return order.is_paid
    return was_delivered


# ==================== PLACING ORDERS ====================

def create_order(user, cart_items, shipping_address):
    """
    Direct checkout with explicit lines (product_id, quantity, flavor, size).
    Prices sent by the client are ignored.
    """
    lines = []
    for raw in cart_items:
        try:
            product = Product.objects.get(pk=raw['product_id'])
        except Product.DoesNotExist:
            raise Product.DoesNotExist(f"Product {raw['product_id']} not found")
        _check_stock(product, raw['quantity'])
        lines.append({
            'product': product,
            'quantity': raw['quantity'],
            'flavor': raw.get('flavor'),
            'size': raw.get('size'),
        })

    with transaction.atomic():
        order = _create_order_records(user, lines, shipping_address, Order.PaymentMethod.COD)
        clear_cart(user)

    logger.info("Order %s created for user %s (total %s)", order.pk, user.pk, order.total_amount)
    return get_order(order.pk)


def place_order_from_cart(user, address_id, payment_method=Order.PaymentMethod.COD, coupon_code=None):
    from coupons.services import apply_coupon_to_order, validate_coupon

    if payment_method not in Order.PaymentMethod.values:
        raise ValidationError("Invalid payment method")

    address = Address.objects.filter(pk=address_id).first()
    if address is None or address.user_id != user.id:
        raise PermissionDenied("Address not found or unauthorized")

    cart_items = list(CartItem.objects.filter(cart__user=user).select_related('product'))
    if not cart_items:
        raise ValidationError("Cart is empty")

    for item in cart_items:
        _check_stock(item.product, item.quantity)

    coupon_code = (coupon_code or '').strip()
    if coupon_code:
        is_valid, error, _ = validate_coupon(coupon_code)
        if not is_valid:
            raise ValidationError(error)

    lines = [
        {'product': i.product, 'quantity': i.quantity, 'flavor': i.flavor, 'size': i.size}
        for i in cart_items
    ]
    shipping = {
        'name': address.name,
        'phone': address.phone,
        'address': address.address,
        'city': address.city,
        'state': address.state,
        'pincode': address.pincode,
    }

    with transaction.atomic():
        order = _create_order_records(user, lines, shipping, payment_method)

        if coupon_code:
            applied = apply_coupon_to_order(coupon_code, order, user, order.total_amount)
            order.coupon_discount = applied.discount_amount
            order.total_amount = order.total_amount - applied.discount_amount
            order.save(update_fields=['coupon_discount', 'total_amount', 'updated_at'])

        # Online orders keep the cart until the payment is verified
        if payment_method == Order.PaymentMethod.COD:
            clear_cart(user)
            transaction.on_commit(lambda: emails.send_order_confirmation(get_order(order.pk)))

    logger.info(
        "Order %s placed from cart by user %s via %s (total %s)",
        order.pk, user.pk, payment_method, order.total_amount,
    )
    return get_order(order.pk)


# ==================== STATUS CHANGES ====================

def update_order_status(order_id, status):
    from .refund_service import create_refund_for_approved_cancellation

    status = parse_status(status)
    with transaction.atomic():
        try:
            order = Order.objects.select_for_update().get(pk=order_id)
        except Order.DoesNotExist:
            raise Order.DoesNotExist("Order not found")

        if order.status == status:
            return get_order(order.pk)
        if order.status == Order.Status.CANCELLED:
            raise ValidationError("Cannot change status of a cancelled order")

        previous = order.status
        fields = ['status', 'updated_at']
        stamp = STATUS_TIMESTAMPS.get(status)
        if stamp and getattr(order, stamp) is None:
            setattr(order, stamp, timezone.now())
            fields.append(stamp)

        # Goods never reached the customer, put them back on the shelf
        if status == Order.Status.CANCELLED and previous != Order.Status.DELIVERED:
            restore_stock(order)

        order.status = status
        order.save(update_fields=fields)

        if status == Order.Status.CANCELLED and money_collected(order, previous == Order.Status.DELIVERED):
            if not OrderRefund.objects.filter(order=order).exists():
                create_refund_for_approved_cancellation(order.pk, "Order cancelled by staff")

        if status == Order.Status.SHIPPED:
            transaction.on_commit(lambda: emails.send_order_shipped(order))
        elif status == Order.Status.DELIVERED:
            transaction.on_commit(lambda: emails.send_order_delivered(order))

    logger.info("Order %s status %s -> %s", order.pk, previous, status)
    return get_order(order.pk)


def cancel_order(order_id, user=None):
    """Customer cancellation; only orders that are still PENDING."""
    from .refund_service import create_refund_for_approved_cancellation

    with transaction.atomic():
        try:
            order = Order.objects.select_for_update().get(pk=order_id)
        except Order.DoesNotExist:
            raise Order.DoesNotExist("Order not found")

        if user is not None and order.user_id != user.id:
            raise PermissionDenied("Unauthorized")
        if order.status != Order.Status.PENDING:
            raise ValidationError(f"Cannot cancel order with status {order.status}")

        restore_stock(order, user=user)
        order.status = Order.Status.CANCELLED
        order.cancelled_at = timezone.now()
        order.save(update_fields=['status', 'cancelled_at', 'updated_at'])

        if money_collected(order, was_delivered=False):
            create_refund_for_approved_cancellation(order.pk, "Order cancelled by customer")

    logger.info("Order %s cancelled by user %s", order.pk, getattr(user, 'pk', None))
    return get_order(order.pk)


# ==================== PAYMENT HOOKS ====================

def mark_order_paid(order, razorpay_order_id, razorpay_payment_id, razorpay_signature=None):
    order.razorpay_order_id = razorpay_order_id
    order.razorpay_payment_id = razorpay_payment_id
    order.razorpay_signature = razorpay_signature
    order.paid_at = order.paid_at or timezone.now()
    order.save(update_fields=[
        'razorpay_order_id', 'razorpay_payment_id', 'razorpay_signature', 'paid_at', 'updated_at',
    ])
    logger.info("Order %s marked paid (payment %s)", order.pk, razorpay_payment_id)
    return order


def clear_cart_after_payment(user):
    """Failure here must not fail a verified payment."""
    try:
        clear_cart(user)
    except Exception:
        logger.warning("Could not clear cart for user %s after payment", user.pk, exc_info=True)
        return False
    return True
