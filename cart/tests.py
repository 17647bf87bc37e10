import json
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase

from products.models import Product
from . import services
from .models import CartItem

User = get_user_model()


class CartServiceTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user('buyer', 'buyer@example.com', 'pass')
        self.whey = Product.objects.create(
            name='Whey', base_price=Decimal('1000'), discount_percent=Decimal('10'),
            gst_percent=Decimal('18'), stock_quantity=10,
        )
        self.bcaa = Product.objects.create(name='BCAA', base_price=Decimal('500'), stock_quantity=5)

    def test_add_same_line_increments(self):
        services.add_to_cart(self.user, self.whey.pk, 1, flavor='Chocolate', size='1kg')
        item = services.add_to_cart(self.user, self.whey.pk, 2, flavor='Chocolate', size='1kg')
        self.assertEqual(item.quantity, 3)
        self.assertEqual(CartItem.objects.count(), 1)

    def test_different_variants_are_separate_lines(self):
        services.add_to_cart(self.user, self.whey.pk, 1, flavor='Chocolate')
        services.add_to_cart(self.user, self.whey.pk, 1, flavor='Vanilla')
        services.add_to_cart(self.user, self.whey.pk, 1)
        self.assertEqual(CartItem.objects.count(), 3)

    def test_add_rejects_non_positive_quantity(self):
        with self.assertRaises(ValidationError):
            services.add_to_cart(self.user, self.whey.pk, 0)

    def test_update_and_remove(self):
        services.add_to_cart(self.user, self.bcaa.pk, 1)
        item = services.update_cart_item(self.user, self.bcaa.pk, 4)
        self.assertEqual(item.quantity, 4)
        self.assertTrue(services.remove_cart_item(self.user, self.bcaa.pk))
        self.assertFalse(services.remove_cart_item(self.user, self.bcaa.pk))

    def test_update_missing_line(self):
        with self.assertRaises(CartItem.DoesNotExist):
            services.update_cart_item(self.user, self.bcaa.pk, 2)

    def test_totals(self):
        services.add_to_cart(self.user, self.whey.pk, 2)
        services.add_to_cart(self.user, self.bcaa.pk, 1)
        totals = services.cart_totals(services.get_or_create_cart(self.user))
        self.assertEqual(totals['subtotal'], Decimal('2500.00'))
        self.assertEqual(totals['discount'], Decimal('200.00'))
        self.assertEqual(totals['gst'], Decimal('324.00'))
        self.assertEqual(totals['grand_total'], Decimal('2624.00'))

    def test_merge_guest_cart(self):
        services.add_to_cart(self.user, self.whey.pk, 1)
        cart = services.merge_guest_cart(self.user, [
            {'product_id': self.whey.pk, 'quantity': 2},
            {'product_id': self.bcaa.pk, 'quantity': 1, 'flavor': 'Mango'},
        ])
        self.assertEqual(cart['item_count'], 4)
        self.assertEqual(len(cart['items']), 2)

    def test_clear_cart(self):
        services.add_to_cart(self.user, self.whey.pk, 1)
        services.clear_cart(self.user)
        self.assertEqual(services.get_cart_with_totals(self.user)['items'], [])


class CartViewTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user('buyer', 'buyer@example.com', 'pass')
        self.product = Product.objects.create(name='Whey', base_price=Decimal('100'), stock_quantity=3)

    def post(self, url, payload, method='post'):
        return getattr(self.client, method)(url, json.dumps(payload), content_type='application/json')

    def test_requires_login(self):
        self.assertEqual(self.client.get('/api/cart/').status_code, 401)

    def test_add_then_get(self):
        self.client.force_login(self.user)
        res = self.post('/api/cart/add/', {'product_id': self.product.pk, 'quantity': 2})
        self.assertEqual(res.status_code, 200)
        cart = self.client.get('/api/cart/').json()
        self.assertEqual(cart['item_count'], 2)
        self.assertEqual(cart['grand_total'], 200.0)

    def test_add_invalid_quantity(self):
        self.client.force_login(self.user)
        res = self.post('/api/cart/add/', {'product_id': self.product.pk, 'quantity': -1})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()['message'], 'Invalid product_id or quantity')

    def test_add_unknown_product(self):
        self.client.force_login(self.user)
        res = self.post('/api/cart/add/', {'product_id': 99999, 'quantity': 1})
        self.assertEqual(res.status_code, 404)

    def test_remove_is_idempotent(self):
        self.client.force_login(self.user)
        res = self.post('/api/cart/remove/', {'product_id': self.product.pk}, method='delete')
        self.assertEqual(res.json(), {'success': True, 'removed': False})

    def test_merge_rejects_bad_lines(self):
        self.client.force_login(self.user)
        res = self.post('/api/cart/merge/', {'cart_items': [{'product_id': self.product.pk, 'quantity': 0}]})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()['message'], 'Invalid cart item data')
        res = self.post('/api/cart/merge/', {'cart_items': []})
        self.assertEqual(res.json()['message'], 'Invalid cart items')
