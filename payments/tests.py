import json
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.exceptions import PermissionDenied, ValidationError
from django.test import TestCase, override_settings

from cart.models import CartItem
from cart.services import add_to_cart
from orders.models import Order, OrderItem, OrderRefund
from orders.services import cancel_order
from products.models import Product
from . import services
from .gateway import PaymentGatewayError, expected_signature, to_paise, verify_signature
from .models import Payment

User = get_user_model()


class GatewayHelperTests(TestCase):

    def test_to_paise_rounds_half_up(self):
        self.assertEqual(to_paise(Decimal('499.995')), 50000)
        self.assertEqual(to_paise('1180.00'), 118000)
        self.assertEqual(to_paise(10.1), 1010)

    @override_settings(RAZORPAY_KEY_SECRET='test_secret')
    def test_signature(self):
        sig = expected_signature('order_X', 'pay_Y')
        self.assertEqual(len(sig), 64)
        self.assertTrue(verify_signature('order_X', 'pay_Y', sig))
        self.assertFalse(verify_signature('order_X', 'pay_Z', sig))
        self.assertFalse(verify_signature('order_X', 'pay_Y', None))


@override_settings(RAZORPAY_KEY_ID='rzp_test_key', RAZORPAY_KEY_SECRET='test_secret')
class RazorpayFlowTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user('buyer', 'buyer@example.com', 'pass')
        self.product = Product.objects.create(name='Whey', base_price=Decimal('1000'), stock_quantity=10)
        self.order = Order.objects.create(
            id='20250101-101010-0000000001', user=self.user, payment_method=Order.PaymentMethod.RAZORPAY,
            subtotal=Decimal('1000'), total_amount=Decimal('1000.00'),
        )
        OrderItem.objects.create(
            order=self.order, product=self.product, product_name='Whey', quantity=1, price=Decimal('1000'),
        )

    def _create(self, client):
        client.order.create.return_value = {'id': 'order_RZP1', 'amount': 100000, 'currency': 'INR'}
        return services.create_razorpay_order(self.user, '1000.00', self.order.pk)

    @mock.patch('payments.gateway.razorpay_client')
    def test_create_order(self, client):
        result = self._create(client)

        self.assertEqual(result['order_id'], 'order_RZP1')
        self.assertEqual(result['amount'], 100000)
        self.assertEqual(result['key_id'], 'rzp_test_key')
        self.assertEqual(result['receipt'], self.order.pk)

        sent = client.order.create.call_args[0][0]
        self.assertEqual(sent['amount'], 100000)
        self.assertEqual(sent['currency'], 'INR')
        self.assertEqual(sent['notes'], {'user_id': str(self.user.pk), 'order_id': self.order.pk})

        payment = Payment.objects.get()
        self.assertEqual(payment.status, Payment.Status.CREATED)
        self.order.refresh_from_db()
        self.assertEqual(self.order.razorpay_order_id, 'order_RZP1')

    @mock.patch('payments.gateway.razorpay_client')
    def test_create_order_rejections(self, client):
        for amount in (None, 0, -5, 'abc', True):
            with self.assertRaises(ValidationError):
                services.create_razorpay_order(self.user, amount, self.order.pk)
        with self.assertRaises(ValidationError):
            services.create_razorpay_order(self.user, '1000', '')
        with self.assertRaises(ValidationError):
            services.create_razorpay_order(self.user, '999', self.order.pk)

        other = User.objects.create_user('other', 'other@example.com', 'pass')
        with self.assertRaises(PermissionDenied):
            services.create_razorpay_order(other, '1000', self.order.pk)
        client.order.create.assert_not_called()

    @mock.patch('payments.gateway.razorpay_client')
    def test_gateway_failure_is_502(self, client):
        client.order.create.side_effect = RuntimeError("boom")
        with self.assertRaises(PaymentGatewayError):
            services.create_razorpay_order(self.user, '1000', self.order.pk)

        self.client.force_login(self.user)
        resp = self.client.post(
            '/api/payment/create-order/',
            json.dumps({'amount': 1000, 'order_id': self.order.pk}),
            content_type='application/json',
        )
        self.assertEqual(resp.status_code, 502)

    @mock.patch('payments.gateway.razorpay_client')
    def test_verify_marks_paid_and_clears_cart(self, client):
        self._create(client)
        add_to_cart(self.user, self.product.pk, 1)
        sig = expected_signature('order_RZP1', 'pay_1')

        result = services.verify_razorpay_payment(self.user, 'order_RZP1', 'pay_1', sig, self.order.pk)

        self.assertEqual(result, {'success': True, 'message': 'Payment verified successfully', 'payment_id': 'pay_1'})
        self.order.refresh_from_db()
        self.assertTrue(self.order.is_paid)
        self.assertEqual(self.order.razorpay_payment_id, 'pay_1')
        self.assertEqual(Payment.objects.get().status, Payment.Status.PAID)
        self.assertFalse(CartItem.objects.filter(cart__user=self.user).exists())
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(self.order.pk, mail.outbox[0].subject)

        # Replaying the same verification is harmless
        services.verify_razorpay_payment(self.user, 'order_RZP1', 'pay_1', sig, self.order.pk)
        self.assertEqual(len(mail.outbox), 1)

        with self.assertRaises(ValidationError):
            services.create_razorpay_order(self.user, '1000', self.order.pk)

    @mock.patch('payments.gateway.razorpay_client')
    def test_verify_bad_signature(self, client):
        self._create(client)
        with self.assertRaises(ValidationError) as ctx:
            services.verify_razorpay_payment(self.user, 'order_RZP1', 'pay_1', 'deadbeef', self.order.pk)
        self.assertEqual(ctx.exception.messages[0], "Invalid payment signature")
        self.assertEqual(Payment.objects.get().status, Payment.Status.FAILED)
        self.order.refresh_from_db()
        self.assertFalse(self.order.is_paid)

    def test_verify_missing_fields(self):
        with self.assertRaises(ValidationError):
            services.verify_razorpay_payment(self.user, 'order_RZP1', '', 'sig', self.order.pk)

    @mock.patch('payments.gateway.razorpay_client')
    def test_verify_rejects_razorpay_order_of_another_order(self, client):
        cheap = Order.objects.create(
            id='20250101-101010-0000000002', user=self.user, payment_method=Order.PaymentMethod.RAZORPAY,
            subtotal=Decimal('1.00'), total_amount=Decimal('1.00'),
        )
        client.order.create.return_value = {'id': 'order_CHEAP', 'amount': 100, 'currency': 'INR'}
        services.create_razorpay_order(self.user, '1.00', cheap.pk)
        sig = expected_signature('order_CHEAP', 'pay_cheap')

        with self.assertRaises(ValidationError) as ctx:
            services.verify_razorpay_payment(self.user, 'order_CHEAP', 'pay_cheap', sig, self.order.pk)

        self.assertEqual(ctx.exception.messages[0], "Payment does not belong to this order")
        self.order.refresh_from_db()
        self.assertFalse(self.order.is_paid)
        self.assertIsNone(self.order.razorpay_payment_id)

    @mock.patch('payments.gateway.razorpay_client')
    def test_verify_rejects_second_payment_on_paid_order(self, client):
        self._create(client)
        services.verify_razorpay_payment(
            self.user, 'order_RZP1', 'pay_1', expected_signature('order_RZP1', 'pay_1'), self.order.pk,
        )

        with self.assertRaises(ValidationError) as ctx:
            services.verify_razorpay_payment(
                self.user, 'order_RZP1', 'pay_2', expected_signature('order_RZP1', 'pay_2'), self.order.pk,
            )

        self.assertEqual(ctx.exception.messages[0], "Order is already paid")
        self.order.refresh_from_db()
        self.assertEqual(self.order.razorpay_payment_id, 'pay_1')
        self.assertEqual(Payment.objects.get().razorpay_payment_id, 'pay_1')

    @mock.patch('payments.gateway.razorpay_client')
    def test_payment_after_cancel_is_refunded(self, client):
        client.payment.refund.return_value = {'id': 'rfnd_late', 'status': 'processed'}
        self._create(client)
        add_to_cart(self.user, self.product.pk, 1)
        cancel_order(self.order.pk, user=self.user)
        sig = expected_signature('order_RZP1', 'pay_1')

        with self.captureOnCommitCallbacks(execute=True):
            with self.assertRaises(ValidationError) as ctx:
                services.verify_razorpay_payment(self.user, 'order_RZP1', 'pay_1', sig, self.order.pk)

        self.assertEqual(ctx.exception.messages[0], "Order was cancelled. The payment will be refunded")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.CANCELLED)
        self.assertEqual(self.order.razorpay_payment_id, 'pay_1')
        self.assertEqual(Payment.objects.get().status, Payment.Status.PAID)

        refund = OrderRefund.objects.get(order=self.order)
        self.assertEqual(refund.refund_amount, Decimal('1000.00'))
        self.assertEqual(refund.razorpay_refund_id, 'rfnd_late')
        self.assertEqual(client.payment.refund.call_args[0][0], 'pay_1')

        # No confirmation mail, and the cart is left alone
        self.assertEqual(len(mail.outbox), 0)
        self.assertTrue(CartItem.objects.filter(cart__user=self.user).exists())

        with self.assertRaises(ValidationError):
            services.verify_razorpay_payment(self.user, 'order_RZP1', 'pay_1', sig, self.order.pk)
        self.assertEqual(OrderRefund.objects.filter(order=self.order).count(), 1)

    @mock.patch('payments.gateway.razorpay_client')
    @mock.patch('orders.emails.send_mail', side_effect=OSError("smtp down"))
    def test_mail_failure_does_not_fail_verification(self, send_mail, client):
        self._create(client)
        sig = expected_signature('order_RZP1', 'pay_1')

        self.client.force_login(self.user)
        resp = self.client.post('/api/payment/verify/', json.dumps({
            'razorpay_order_id': 'order_RZP1',
            'razorpay_payment_id': 'pay_1',
            'razorpay_signature': sig,
            'order_id': self.order.pk,
        }), content_type='application/json')

        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()['success'])
        send_mail.assert_called_once()
