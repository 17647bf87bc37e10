# cart/services.py
"""
Cart operations for signed-in users. Lines are keyed by
(cart, product, flavor, size); prices are always read from the product at
the time totals are computed, never cached on the line.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F

from products.models import Product
from storefront.api import money
from .models import Cart, CartItem

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def _variant(value):
    return (value or '').strip()


def _check_quantity(quantity):
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("Quantity must be a positive integer")


def get_or_create_cart(user):
    cart, _ = Cart.objects.get_or_create(user=user)
    return cart


@transaction.atomic
def add_to_cart(user, product_id, quantity, flavor=None, size=None):
    """Add a line, or bump the quantity of an identical line already in the cart."""
    _check_quantity(quantity)
    product = Product.objects.get(pk=product_id, is_active=True)
    cart = get_or_create_cart(user)

    item, created = CartItem.objects.select_for_update().get_or_create(
        cart=cart,
        product=product,
        flavor=_variant(flavor),
        size=_variant(size),
        defaults={'quantity': quantity},
    )
    if not created:
        CartItem.objects.filter(pk=item.pk).update(quantity=F('quantity') + quantity)
        item.refresh_from_db()

    logger.debug("Cart %s: product %s qty now %s", cart.pk, product.pk, item.quantity)
    return item


def update_cart_item(user, product_id, quantity, flavor=None, size=None):
    _check_quantity(quantity)
    cart = get_or_create_cart(user)
    item = CartItem.objects.select_related('product').get(
        cart=cart, product_id=product_id, flavor=_variant(flavor), size=_variant(size)
    )
    item.quantity = quantity
    item.save(update_fields=['quantity'])
    return item


def remove_cart_item(user, product_id, flavor=None, size=None):
    """Returns True when a line was deleted; a missing line is not an error."""
    cart = get_or_create_cart(user)
    deleted, _ = CartItem.objects.filter(
        cart=cart, product_id=product_id, flavor=_variant(flavor), size=_variant(size)
    ).delete()
    return deleted > 0


@transaction.atomic
def merge_guest_cart(user, items):
    """Fold a guest (browser-side) cart into the user's cart."""
    for line in items:
        add_to_cart(
            user,
            line['product_id'],
            line['quantity'],
            flavor=line.get('flavor'),
            size=line.get('size'),
        )
    logger.info("Merged %s guest cart line(s) for user %s", len(items), user.pk)
    return get_cart_with_totals(user)


def clear_cart(user):
    deleted, _ = CartItem.objects.filter(cart__user=user).delete()
    return deleted


def cart_totals(cart):
    subtotal = discount = gst = Decimal('0.00')
    for item in cart.items.select_related('product'):
        subtotal += item.line_subtotal
        discount += item.line_discount
        gst += item.line_gst

    subtotal = subtotal.quantize(CENT, rounding=ROUND_HALF_UP)
    discount = discount.quantize(CENT, rounding=ROUND_HALF_UP)
    gst = gst.quantize(CENT, rounding=ROUND_HALF_UP)
    return {
        'subtotal': subtotal,
        'discount': discount,
        'gst': gst,
        'grand_total': subtotal - discount + gst,
    }


def serialize_cart_item(item):
    product = item.product
    return {
        'id': item.id,
        'product_id': product.id,
        'name': product.name,
        'image_url': (product.image_urls or [None])[0],
        'quantity': item.quantity,
        'flavor': item.flavor or None,
        'size': item.size or None,
        'base_price': money(product.base_price),
        'final_price': money(product.final_price),
        'stock_quantity': product.stock_quantity,
        'line_total': money(item.line_total),
    }


def get_cart_with_totals(user):
    cart = get_or_create_cart(user)
    items = list(cart.items.select_related('product'))
    totals = cart_totals(cart)
    return {
        'id': cart.id,
        'items': [serialize_cart_item(i) for i in items],
        'item_count': sum(i.quantity for i in items),
        'subtotal': money(totals['subtotal']),
        'discount': money(totals['discount']),
        'gst': money(totals['gst']),
        'grand_total': money(totals['grand_total']),
    }
