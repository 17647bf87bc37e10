import json
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied, ValidationError
from django.test import TestCase
from django.utils import timezone

from orders.models import Order
from . import services
from .models import AppliedCoupon, Coupon

User = get_user_model()


def make_order(user, pk='20250101-000000-0001234567', total='1000.00', **kwargs):
    return Order.objects.create(id=pk, user=user, subtotal=Decimal(total), total_amount=Decimal(total), **kwargs)


class CouponServiceTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user('buyer', 'buyer@example.com', 'pass')

    def test_code_generation(self):
        coupon = services.create_coupon('John Doe')
        self.assertEqual(coupon.code, 'JOHNDOE_10')
        self.assertEqual(services.create_coupon('Priya', discount_percent='12.5').code, 'PRIYA_12.5')

    def test_duplicate_code_gets_suffix(self):
        services.create_coupon('John')
        second = services.create_coupon('John')
        self.assertTrue(second.code.startswith('JOHN_10_'))
        self.assertEqual(len(second.code), len('JOHN_10_') + 6)

    def test_create_rejects_bad_input(self):
        with self.assertRaises(ValidationError):
            services.create_coupon('   ')
        with self.assertRaises(ValidationError):
            services.create_coupon('John', discount_percent=150)
        with self.assertRaises(ValidationError):
            services.create_coupon('John', max_uses=0)
        with self.assertRaises(ValidationError):
            services.create_coupon('John', expiry_date=timezone.now() - timedelta(days=1))

    def test_validate(self):
        coupon = services.create_coupon('John', max_uses=1)
        self.assertEqual(services.validate_coupon(''), (False, "Coupon code is required", None))
        self.assertEqual(services.validate_coupon('NOPE'), (False, "Invalid coupon code", None))
        self.assertEqual(services.validate_coupon('john_10'), (True, None, coupon))

        Coupon.objects.filter(pk=coupon.pk).update(usage_count=1)
        ok, error, _ = services.validate_coupon('JOHN_10')
        self.assertFalse(ok)
        self.assertEqual(error, "This coupon code has reached its usage limit")

        Coupon.objects.filter(pk=coupon.pk).update(is_active=False)
        self.assertEqual(services.validate_coupon('JOHN_10')[1], "This coupon code is no longer active")

    def test_expired(self):
        coupon = services.create_coupon('John')
        Coupon.objects.filter(pk=coupon.pk).update(expiry_date=timezone.now() - timedelta(hours=1))
        self.assertEqual(services.validate_coupon('JOHN_10')[1], "This coupon code has expired")

    def test_apply_records_usage(self):
        coupon = services.create_coupon('John')
        order = make_order(self.user)
        applied = services.apply_coupon_to_order('JOHN_10', order, self.user, Decimal('1000.00'))

        self.assertEqual(applied.discount_amount, Decimal('100.00'))
        self.assertEqual(applied.trainer_name, 'John')
        self.assertEqual(applied.commission_note, "10% discount = ₹100.00 discount given")
        coupon.refresh_from_db()
        self.assertEqual(coupon.usage_count, 1)

    def test_apply_to_existing_order(self):
        services.create_coupon('John')
        order = make_order(self.user)
        applied, order = services.apply_coupon_to_existing_order('JOHN_10', order.pk, self.user)
        order.refresh_from_db()
        self.assertEqual(order.coupon_discount, Decimal('100.00'))
        self.assertEqual(order.total_amount, Decimal('900.00'))

        with self.assertRaises(ValidationError):
            services.apply_coupon_to_existing_order('JOHN_10', order.pk, self.user)

    def test_apply_to_someone_elses_order(self):
        services.create_coupon('John')
        other = User.objects.create_user('other', 'other@example.com', 'pass')
        order = make_order(other)
        with self.assertRaises(PermissionDenied):
            services.apply_coupon_to_existing_order('JOHN_10', order.pk, self.user)

    def test_apply_to_paid_order(self):
        services.create_coupon('John')
        order = make_order(self.user, payment_method=Order.PaymentMethod.RAZORPAY, paid_at=timezone.now())
        with self.assertRaises(ValidationError):
            services.apply_coupon_to_existing_order('JOHN_10', order.pk, self.user)

    def test_commission_report(self):
        services.create_coupon('John')
        services.create_coupon('John', discount_percent=20)
        services.create_coupon('Priya')
        services.apply_coupon_to_order('JOHN_10', make_order(self.user, pk='A1'), self.user, Decimal('500'))
        services.apply_coupon_to_order('JOHN_20', make_order(self.user, pk='A2'), self.user, Decimal('500'))

        report = services.get_trainer_commission_report('john')
        self.assertEqual(report['total_coupons_issued'], 2)
        self.assertEqual(report['total_usages'], 2)
        self.assertEqual(report['total_discount_given'], Decimal('150.00'))

        applied = services.get_applied_coupons_by_trainer('John')
        self.assertEqual(applied['total_usages'], 2)
        self.assertEqual(applied['total_discount'], Decimal('150.00'))

    def test_deactivate_and_reactivate(self):
        coupon = services.create_coupon('John')
        self.assertFalse(services.deactivate_coupon(coupon.pk).is_active)
        self.assertTrue(services.reactivate_coupon(coupon.pk).is_active)
        with self.assertRaises(Coupon.DoesNotExist):
            services.deactivate_coupon(coupon.pk + 100)


class CouponViewTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user('buyer', 'buyer@example.com', 'pass')
        self.admin = User.objects.create_user('admin', 'admin@example.com', 'pass', is_staff=True)

    def post(self, url, data):
        return self.client.post(url, json.dumps(data), content_type='application/json')

    def test_create_requires_staff(self):
        self.client.force_login(self.user)
        resp = self.post('/api/coupons/create/', {'trainer_name': 'John'})
        self.assertEqual(resp.status_code, 403)

    def test_create_and_list(self):
        self.client.force_login(self.admin)
        resp = self.post('/api/coupons/create/', {'trainer_name': 'John', 'discount_percent': 15})
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()['coupon']['code'], 'JOHN_15')

        resp = self.post('/api/coupons/create/', {'trainer_name': ''})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['message'], "Trainer name is required")

        resp = self.client.get('/api/coupons/', {'is_active': 'true'})
        self.assertEqual(resp.json()['total'], 1)

    def test_validate_is_public(self):
        services.create_coupon('John')
        resp = self.post('/api/coupons/validate/', {'coupon_code': 'JOHN_10'})
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()['is_valid'])
        self.assertEqual(resp.json()['coupon']['discount_percent'], 10.0)

        resp = self.post('/api/coupons/validate/', {'coupon_code': 'NOPE'})
        self.assertFalse(resp.json()['is_valid'])
        self.assertEqual(resp.json()['error'], "Invalid coupon code")

    def test_apply(self):
        services.create_coupon('John')
        order = make_order(self.user)
        self.client.force_login(self.user)
        resp = self.post('/api/coupons/apply/', {'coupon_code': 'JOHN_10', 'order_id': order.pk})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['discount_amount'], 100.0)
        self.assertEqual(AppliedCoupon.objects.count(), 1)

    def test_commission_export(self):
        services.create_coupon('John')
        self.client.force_login(self.admin)
        resp = self.client.get('/api/coupons/trainer/John/commission-report/export/')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp['Content-Type'], 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')
        self.assertTrue(resp.content.startswith(b'PK'))
