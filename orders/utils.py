# orders/utils.py
from storefront.api import money, timestamp


def serialize_order_address(address):
    if address is None:
        return None
    return {
        'name': address.name,
        'phone': address.phone,
        'address': address.address,
        'city': address.city,
        'state': address.state,
        'pincode': address.pincode,
    }


def serialize_order_item(item):
    return {
        'id': item.id,
        'product_id': item.product_id,
        'product_name': item.product_name,
        'quantity': item.quantity,
        'price': money(item.price),
        'line_total': money(item.line_total),
        'flavor': item.flavor or None,
        'size': item.size or None,
    }


def serialize_order(order, include_items=True):
    data = {
        'id': order.id,
        'user_id': order.user_id,
        'status': order.status,
        'payment_method': order.payment_method,
        'subtotal': money(order.subtotal),
        'discount': money(order.discount),
        'gst_amount': money(order.gst_amount),
        'coupon_discount': money(order.coupon_discount),
        'total_amount': money(order.total_amount),
        'razorpay_order_id': order.razorpay_order_id,
        'razorpay_payment_id': order.razorpay_payment_id,
        'is_paid': order.is_paid,
        'created_at': timestamp(order.created_at),
        'paid_at': timestamp(order.paid_at),
        'shipped_at': timestamp(order.shipped_at),
        'delivered_at': timestamp(order.delivered_at),
        'cancelled_at': timestamp(order.cancelled_at),
    }
    if include_items:
        data['items'] = [serialize_order_item(i) for i in order.items.all()]
        data['address'] = serialize_order_address(getattr(order, 'address', None))
    return data


def serialize_cancellation_request(req, include_order=False):
    data = {
        'id': req.id,
        'order_id': req.order_id,
        'user_id': req.user_id,
        'reason': req.reason,
        'upi_id': req.upi_id,
        'status': req.status,
        'decided_by': req.decided_by_id,
        'decided_at': timestamp(req.decided_at),
        'created_at': timestamp(req.created_at),
    }
    if include_order:
        data['order'] = serialize_order(req.order)
    return data


def serialize_refund(refund, include_order=False):
    data = {
        'id': refund.id,
        'order_id': refund.order_id,
        'refund_amount': money(refund.refund_amount),
        'reason': refund.reason,
        'upi_id': refund.upi_id,
        'status': refund.status,
        'razorpay_refund_id': refund.razorpay_refund_id,
        'initiated_at': timestamp(refund.initiated_at),
        'completed_at': timestamp(refund.completed_at),
    }
    if include_order:
        data['order'] = serialize_order(refund.order, include_items=False)
    return data
