import json
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from cart.services import add_to_cart
from products.models import Product
from .models import Address, Profile

User = get_user_model()


def address_payload(**kwargs):
    data = {
        'name': 'Asha', 'phone': '9876543210', 'address': '12 MG Road',
        'city': 'Kochi', 'state': 'Kerala', 'pincode': '682001',
    }
    data.update(kwargs)
    return data


class SessionTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user('asha', 'asha@example.com', 'secret-pass')

    def post(self, url, data):
        return self.client.post(url, json.dumps(data), content_type='application/json')

    def test_profile_created_with_user(self):
        self.assertTrue(Profile.objects.filter(user=self.user).exists())

    def test_login_with_email(self):
        resp = self.post('/api/user/login/', {'username': 'ASHA@example.com', 'password': 'secret-pass'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['user']['email'], 'asha@example.com')

        resp = self.client.get('/api/user/me/')
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()['is_admin'])

    def test_login_bad_password(self):
        resp = self.post('/api/user/login/', {'username': 'asha', 'password': 'wrong'})
        self.assertEqual(resp.status_code, 401)

    def test_me_requires_login(self):
        resp = self.client.get('/api/user/me/')
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()['message'], "User not authenticated")

    def test_sync_keeps_existing_values(self):
        self.client.force_login(self.user)
        self.post('/api/user/sync/', {'name': 'Asha', 'phone': '9000000000'})
        resp = self.post('/api/user/sync/', {'name': '', 'email': '', 'phone': ''})
        self.assertEqual(resp.json()['name'], 'Asha')
        self.assertEqual(resp.json()['phone'], '9000000000')
        self.assertEqual(resp.json()['email'], 'asha@example.com')

    def test_lookups(self):
        resp = self.client.get('/api/user/check-email/', {'email': 'Asha@Example.com'})
        self.assertTrue(resp.json()['exists'])
        resp = self.client.get('/api/user/check-phone/')
        self.assertEqual(resp.status_code, 400)


class AddressTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user('asha', 'asha@example.com', 'pass')
        self.other = User.objects.create_user('ravi', 'ravi@example.com', 'pass')
        self.client.force_login(self.user)

    def post(self, url, data):
        return self.client.post(url, json.dumps(data), content_type='application/json')

    def test_create_and_list(self):
        resp = self.post('/api/user/address/', address_payload())
        self.assertEqual(resp.status_code, 201)
        resp = self.client.get('/api/user/address/')
        self.assertEqual(len(resp.json()), 1)

    def test_create_missing_fields(self):
        resp = self.post('/api/user/address/', address_payload(city=''))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['message'], "Missing required address fields")

    def test_make_default_unsets_others(self):
        first = Address.objects.create(user=self.user, is_default=True, **address_payload())
        second = Address.objects.create(user=self.user, **address_payload(name='Office'))
        resp = self.client.patch(f'/api/user/address/{second.pk}/default/')
        self.assertEqual(resp.status_code, 200)
        first.refresh_from_db()
        self.assertFalse(first.is_default)

    def test_cannot_touch_other_users_address(self):
        addr = Address.objects.create(user=self.other, **address_payload())
        resp = self.client.delete(f'/api/user/address/{addr.pk}/')
        self.assertEqual(resp.status_code, 403)
        self.assertTrue(Address.objects.filter(pk=addr.pk).exists())

    def test_checkout_data(self):
        Address.objects.create(user=self.user, **address_payload())
        product = Product.objects.create(name='Whey', base_price=Decimal('1000'), stock_quantity=5)
        add_to_cart(self.user, product.pk, 2)
        resp = self.client.get('/api/user/checkout/')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()['addresses']), 1)
        self.assertEqual(resp.json()['cart']['item_count'], 2)
