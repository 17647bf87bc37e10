import json
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from orders.models import Order, OrderItem
from products.models import Product
from user.models import get_profile

User = get_user_model()


class AdminOrderViewTests(TestCase):

    def setUp(self):
        self.customer = User.objects.create_user('buyer', 'buyer@example.com', 'pass', first_name='Asha')
        self.admin = User.objects.create_user('admin', 'admin@example.com', 'pass', is_staff=True)
        self.product = Product.objects.create(name='Creatine', base_price=Decimal('800'), stock_quantity=3)
        self.order = Order.objects.create(
            id='20250101-101010-1230000001', user=self.customer,
            subtotal=Decimal('1600'), total_amount=Decimal('1600'),
        )
        OrderItem.objects.create(
            order=self.order, product=self.product, product_name='Creatine', quantity=2, price=Decimal('800'),
        )
        Order.objects.create(
            id='20250101-101010-1230000002', user=self.customer, status=Order.Status.DELIVERED,
        )

    def patch(self, url, data):
        return self.client.patch(url, json.dumps(data), content_type='application/json')

    def test_anonymous_and_non_staff(self):
        self.assertEqual(self.client.get('/api/admin/orders/').status_code, 401)
        self.client.force_login(self.customer)
        resp = self.client.get('/api/admin/orders/')
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()['message'], "Admin access required")

    def test_list_with_user_summary_and_filter(self):
        profile = get_profile(self.customer)
        profile.phone = '9876543210'
        profile.save()

        self.client.force_login(self.admin)
        resp = self.client.get('/api/admin/orders/')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['total'], 2)
        self.assertEqual(resp.json()['orders'][0]['user']['email'], 'buyer@example.com')
        self.assertEqual(resp.json()['orders'][0]['user']['phone'], '9876543210')

        resp = self.client.get('/api/admin/orders/', {'status': 'DELIVERED'})
        self.assertEqual(resp.json()['total'], 1)

        resp = self.client.get('/api/admin/orders/', {'status': 'LOST'})
        self.assertEqual(resp.status_code, 400)

    def test_status_update(self):
        self.client.force_login(self.admin)
        resp = self.patch(f'/api/admin/orders/{self.order.pk}/status/', {'status': 'SHIPPED'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['order']['status'], 'SHIPPED')
        self.assertIsNotNone(resp.json()['order']['shipped_at'])

        resp = self.patch(f'/api/admin/orders/{self.order.pk}/status/', {'status': 'nope'})
        self.assertEqual(resp.status_code, 400)

        resp = self.patch('/api/admin/orders/missing/status/', {'status': 'SHIPPED'})
        self.assertEqual(resp.status_code, 404)

    def test_invoice(self):
        self.client.force_login(self.admin)
        resp = self.client.get(f'/api/admin/orders/{self.order.pk}/invoice/')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp['Content-Type'], 'application/pdf')
        self.assertTrue(resp.content.startswith(b'%PDF'))
