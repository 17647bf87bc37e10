import json
import re
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.test import TestCase
from django.utils import timezone

from cart.models import CartItem
from cart.services import add_to_cart
from coupons.models import Coupon
from coupons.services import create_coupon
from products.models import Product, StockTransaction
from user.models import Address
from . import cancellation_service, refund_service, services
from .idgen import OrderIdGenerationError, generate_order_id
from .invoice import build_invoice_pdf
from .models import Order, OrderCancellationRequest, OrderRefund

User = get_user_model()

SHIPPING = {
    'name': 'Asha', 'phone': '9876543210', 'address': '12 MG Road',
    'city': 'Kochi', 'state': 'Kerala', 'pincode': '682001',
}
REASON = "The package arrived damaged and leaking"


class OrderTestMixin:

    def setUp(self):
        self.user = User.objects.create_user('asha', 'asha@example.com', 'pass', first_name='Asha')
        self.other = User.objects.create_user('ravi', 'ravi@example.com', 'pass')
        self.admin = User.objects.create_user('admin', 'admin@example.com', 'pass', is_staff=True)
        # 1000 - 10% = 900, + 18% GST = 1062 per unit
        self.whey = Product.objects.create(
            name='Whey', base_price=Decimal('1000'), discount_percent=Decimal('10'),
            gst_percent=Decimal('18'), stock_quantity=10,
        )
        self.bcaa = Product.objects.create(name='BCAA', base_price=Decimal('500'), stock_quantity=2)

    def make_order(self, quantity=2, **updates):
        order = services.create_order(self.user, [{'product_id': self.whey.pk, 'quantity': quantity}], SHIPPING)
        if updates:
            Order.objects.filter(pk=order.pk).update(**updates)
            order.refresh_from_db()
        return order

    def make_paid_online_order(self):
        return self.make_order(
            payment_method=Order.PaymentMethod.RAZORPAY,
            paid_at=timezone.now(),
            razorpay_order_id='order_RZP1',
            razorpay_payment_id='pay_1',
        )


class OrderIdTests(TestCase):

    def test_format(self):
        self.assertRegex(generate_order_id(), r'^\d{8}-\d{6}-\d{10}$')

    @mock.patch('orders.idgen.time.sleep')
    @mock.patch('orders.idgen._candidate', return_value='20250101-000000-0000000001')
    def test_gives_up_after_retries(self, candidate, sleep):
        user = User.objects.create_user('asha', 'asha@example.com', 'pass')
        Order.objects.create(id='20250101-000000-0000000001', user=user)
        with self.assertRaises(OrderIdGenerationError):
            generate_order_id()
        self.assertEqual(candidate.call_count, 5)


class CreateOrderTests(OrderTestMixin, TestCase):

    def test_totals_stock_and_snapshot(self):
        add_to_cart(self.user, self.bcaa.pk, 1)
        order = self.make_order()

        self.assertEqual(order.status, Order.Status.PENDING)
        self.assertEqual(order.subtotal, Decimal('2000.00'))
        self.assertEqual(order.discount, Decimal('200.00'))
        self.assertEqual(order.gst_amount, Decimal('324.00'))
        self.assertEqual(order.total_amount, Decimal('2124.00'))
        self.assertEqual(order.items.get().price, Decimal('1062.00'))
        self.assertEqual(order.address.city, 'Kochi')

        self.whey.refresh_from_db()
        self.assertEqual(self.whey.stock_quantity, 8)
        movement = StockTransaction.objects.get(product=self.whey)
        self.assertEqual(movement.reference, order.pk)
        self.assertEqual(movement.quantity, -2)

        self.assertFalse(CartItem.objects.filter(cart__user=self.user).exists())

    def test_insufficient_stock(self):
        with self.assertRaises(ValidationError) as ctx:
            services.create_order(self.user, [{'product_id': self.bcaa.pk, 'quantity': 3}], SHIPPING)
        self.assertEqual(ctx.exception.messages[0], "Insufficient stock for BCAA. Available: 2, Requested: 3")
        self.assertFalse(Order.objects.exists())

    def test_unknown_product(self):
        with self.assertRaises(Product.DoesNotExist):
            services.create_order(self.user, [{'product_id': 999, 'quantity': 1}], SHIPPING)


class PlaceOrderFromCartTests(OrderTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.address = Address.objects.create(user=self.user, **SHIPPING)
        add_to_cart(self.user, self.whey.pk, 2, flavor='Chocolate', size='1kg')

    def test_cod_with_coupon(self):
        create_coupon('John')
        with self.captureOnCommitCallbacks(execute=True):
            order = services.place_order_from_cart(self.user, self.address.pk, coupon_code='JOHN_10')

        self.assertEqual(order.coupon_discount, Decimal('212.40'))
        self.assertEqual(order.total_amount, Decimal('1911.60'))
        self.assertEqual(order.items.get().flavor, 'Chocolate')
        self.assertEqual(Coupon.objects.get().usage_count, 1)
        self.assertFalse(CartItem.objects.filter(cart__user=self.user).exists())
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, f"Order Confirmation - Order #{order.pk}")

    def test_razorpay_keeps_cart_until_payment(self):
        with self.captureOnCommitCallbacks(execute=True):
            order = services.place_order_from_cart(
                self.user, self.address.pk, payment_method=Order.PaymentMethod.RAZORPAY,
            )
        self.assertTrue(order.is_online)
        self.assertTrue(CartItem.objects.filter(cart__user=self.user).exists())
        self.assertEqual(len(mail.outbox), 0)

    def test_invalid_coupon_places_nothing(self):
        with self.assertRaises(ValidationError):
            services.place_order_from_cart(self.user, self.address.pk, coupon_code='NOPE')
        self.assertFalse(Order.objects.exists())
        self.whey.refresh_from_db()
        self.assertEqual(self.whey.stock_quantity, 10)

    def test_rejections(self):
        other_address = Address.objects.create(user=self.other, **SHIPPING)
        with self.assertRaises(PermissionDenied):
            services.place_order_from_cart(self.user, other_address.pk)
        with self.assertRaises(ValidationError):
            services.place_order_from_cart(self.user, self.address.pk, payment_method='CASH')
        with self.assertRaises(ValidationError):
            services.place_order_from_cart(self.other, other_address.pk)


class OrderStatusTests(OrderTestMixin, TestCase):

    def test_shipped_then_delivered(self):
        order = self.make_order()
        with self.captureOnCommitCallbacks(execute=True):
            order = services.update_order_status(order.pk, Order.Status.SHIPPED)
        self.assertIsNotNone(order.shipped_at)
        self.assertEqual(mail.outbox[-1].subject, f"Your Order is Shipped - Order #{order.pk}")

        with self.captureOnCommitCallbacks(execute=True):
            order = services.update_order_status(order.pk, Order.Status.DELIVERED)
        self.assertIsNotNone(order.delivered_at)
        self.assertEqual(len(mail.outbox), 2)

    def test_cancel_restores_stock(self):
        order = self.make_order()
        services.update_order_status(order.pk, Order.Status.CANCELLED)
        self.whey.refresh_from_db()
        self.assertEqual(self.whey.stock_quantity, 10)

        with self.assertRaises(ValidationError):
            services.update_order_status(order.pk, Order.Status.PENDING)

    def test_cancel_after_delivery_keeps_stock(self):
        order = self.make_order()
        services.update_order_status(order.pk, Order.Status.DELIVERED)
        services.update_order_status(order.pk, Order.Status.CANCELLED)
        self.whey.refresh_from_db()
        self.assertEqual(self.whey.stock_quantity, 8)

    def test_staff_cancel_of_unpaid_cod_order_has_no_refund(self):
        order = self.make_order()
        services.update_order_status(order.pk, Order.Status.CANCELLED)
        self.assertFalse(OrderRefund.objects.filter(order=order).exists())

    def test_staff_cancel_of_delivered_cod_order_opens_refund(self):
        order = self.make_order()
        services.update_order_status(order.pk, Order.Status.DELIVERED)
        services.update_order_status(order.pk, Order.Status.CANCELLED)

        refund = OrderRefund.objects.get(order=order)
        self.assertEqual(refund.status, OrderRefund.Status.INITIATED)
        self.assertEqual(refund.refund_amount, Decimal('2124.00'))
        self.assertIsNone(refund.razorpay_refund_id)

    @mock.patch('payments.gateway.razorpay_client')
    def test_staff_cancel_of_paid_online_order_refunds_via_gateway(self, client):
        client.payment.refund.return_value = {'id': 'rfnd_5', 'status': 'processed'}
        order = self.make_paid_online_order()
        with self.captureOnCommitCallbacks(execute=True):
            services.update_order_status(order.pk, Order.Status.CANCELLED)

        refund = OrderRefund.objects.get(order=order)
        self.assertEqual(refund.razorpay_refund_id, 'rfnd_5')
        self.assertEqual(client.payment.refund.call_args[0][0], 'pay_1')
        self.whey.refresh_from_db()
        self.assertEqual(self.whey.stock_quantity, 10)

    def test_invalid_status_and_missing_order(self):
        order = self.make_order()
        with self.assertRaises(ValidationError):
            services.update_order_status(order.pk, 'LOST')
        with self.assertRaises(Order.DoesNotExist):
            services.update_order_status('missing', Order.Status.SHIPPED)


class CustomerCancelTests(OrderTestMixin, TestCase):

    def test_cancel_pending(self):
        order = self.make_order()
        order = services.cancel_order(order.pk, user=self.user)
        self.assertEqual(order.status, Order.Status.CANCELLED)
        self.assertIsNotNone(order.cancelled_at)
        self.whey.refresh_from_db()
        self.assertEqual(self.whey.stock_quantity, 10)

    def test_only_pending_and_owner(self):
        order = self.make_order()
        with self.assertRaises(PermissionDenied):
            services.cancel_order(order.pk, user=self.other)
        services.update_order_status(order.pk, Order.Status.SHIPPED)
        with self.assertRaises(ValidationError) as ctx:
            services.cancel_order(order.pk, user=self.user)
        self.assertEqual(ctx.exception.messages[0], "Cannot cancel order with status SHIPPED")

    @mock.patch('payments.gateway.razorpay_client')
    def test_paid_online_order_is_refunded(self, client):
        client.payment.refund.return_value = {'id': 'rfnd_1', 'status': 'processed'}
        order = self.make_paid_online_order()
        with self.captureOnCommitCallbacks(execute=True):
            services.cancel_order(order.pk, user=self.user)
        refund = OrderRefund.objects.get(order=order)
        self.assertEqual(refund.razorpay_refund_id, 'rfnd_1')
        client.payment.refund.assert_called_once()


class CancellationRequestTests(OrderTestMixin, TestCase):

    def test_reason_too_short(self):
        order = self.make_order()
        with self.assertRaises(ValidationError) as ctx:
            cancellation_service.create_cancellation_request(order.pk, self.user, "changed mind")
        self.assertEqual(ctx.exception.messages[0], "Reason must be at least 20 letters. Current: 12 letters.")

    def test_required_fields(self):
        with self.assertRaises(ValidationError) as ctx:
            cancellation_service.create_cancellation_request('', self.user, REASON)
        self.assertEqual(ctx.exception.messages[0], "Order ID, User ID, and reason are required")

    def test_ownership_duplicates_and_cancelled(self):
        order = self.make_order()
        with self.assertRaises(PermissionDenied):
            cancellation_service.create_cancellation_request(order.pk, self.other, REASON)

        cancellation_service.create_cancellation_request(order.pk, self.user, REASON, upi_id='asha@upi')
        with self.assertRaises(ValidationError):
            cancellation_service.create_cancellation_request(order.pk, self.user, REASON)

        cancelled = self.make_order(quantity=1, status=Order.Status.CANCELLED)
        with self.assertRaises(ValidationError) as ctx:
            cancellation_service.create_cancellation_request(cancelled.pk, self.user, REASON)
        self.assertEqual(ctx.exception.messages[0], "Order is already cancelled")

        with self.assertRaises(Order.DoesNotExist):
            cancellation_service.create_cancellation_request('missing', self.user, REASON)

    def test_delivery_window(self):
        recent = self.make_order(status=Order.Status.DELIVERED, delivered_at=timezone.now() - timedelta(days=6))
        cancellation_service.create_cancellation_request(recent.pk, self.user, REASON)

        old = self.make_order(status=Order.Status.DELIVERED, delivered_at=timezone.now() - timedelta(days=8))
        with self.assertRaises(ValidationError):
            cancellation_service.create_cancellation_request(old.pk, self.user, REASON)

    def test_approve_unpaid_cod(self):
        order = self.make_order()
        req = cancellation_service.create_cancellation_request(order.pk, self.user, REASON)

        with self.captureOnCommitCallbacks(execute=True):
            req = cancellation_service.approve_cancellation_request(req.pk, self.admin)

        self.assertEqual(req.status, OrderCancellationRequest.Status.APPROVED)
        self.assertEqual(req.decided_by, self.admin)
        order.refresh_from_db()
        self.assertEqual(order.status, Order.Status.CANCELLED)
        self.whey.refresh_from_db()
        self.assertEqual(self.whey.stock_quantity, 10)
        self.assertFalse(OrderRefund.objects.exists())
        self.assertEqual(mail.outbox[-1].subject, f"Cancellation Approved - Order #{order.pk}")

        with self.assertRaises(ValidationError) as ctx:
            cancellation_service.reject_cancellation_request(req.pk, self.admin)
        self.assertEqual(ctx.exception.messages[0], "Cancellation request is already approved")

    def test_approve_delivered_cod_creates_manual_refund(self):
        order = self.make_order(status=Order.Status.DELIVERED, delivered_at=timezone.now())
        req = cancellation_service.create_cancellation_request(order.pk, self.user, REASON, upi_id='asha@upi')
        cancellation_service.approve_cancellation_request(req.pk, self.admin)

        refund = OrderRefund.objects.get(order=order)
        self.assertEqual(refund.status, OrderRefund.Status.INITIATED)
        self.assertEqual(refund.refund_amount, order.total_amount)
        self.assertEqual(refund.upi_id, 'asha@upi')
        self.assertIsNone(refund.razorpay_refund_id)
        # Delivered goods are not returned to stock
        self.whey.refresh_from_db()
        self.assertEqual(self.whey.stock_quantity, 8)

    @mock.patch('payments.gateway.razorpay_client')
    def test_approve_paid_online_refunds_via_gateway(self, client):
        client.payment.refund.return_value = {'id': 'rfnd_9', 'status': 'processed'}
        order = self.make_paid_online_order()
        req = cancellation_service.create_cancellation_request(order.pk, self.user, REASON)
        with self.captureOnCommitCallbacks(execute=True):
            cancellation_service.approve_cancellation_request(req.pk, self.admin)

        refund = OrderRefund.objects.get(order=order)
        self.assertEqual(refund.razorpay_refund_id, 'rfnd_9')
        args = client.payment.refund.call_args[0]
        self.assertEqual(args[0], 'pay_1')
        self.assertEqual(args[1]['amount'], 212400)

    @mock.patch('payments.gateway.razorpay_client')
    def test_gateway_refund_failure_leaves_initiated(self, client):
        client.payment.refund.side_effect = RuntimeError("gateway down")
        order = self.make_paid_online_order()
        req = cancellation_service.create_cancellation_request(order.pk, self.user, REASON)
        with self.captureOnCommitCallbacks(execute=True):
            cancellation_service.approve_cancellation_request(req.pk, self.admin)

        refund = OrderRefund.objects.get(order=order)
        self.assertEqual(refund.status, OrderRefund.Status.INITIATED)
        self.assertIsNone(refund.razorpay_refund_id)

    def test_reject(self):
        order = self.make_order()
        req = cancellation_service.create_cancellation_request(order.pk, self.user, REASON)
        with self.captureOnCommitCallbacks(execute=True):
            req = cancellation_service.reject_cancellation_request(req.pk, self.admin)
        self.assertEqual(req.status, OrderCancellationRequest.Status.REJECTED)
        order.refresh_from_db()
        self.assertEqual(order.status, Order.Status.PENDING)
        self.assertEqual(len(mail.outbox), 1)

        with self.assertRaises(OrderCancellationRequest.DoesNotExist):
            cancellation_service.reject_cancellation_request(req.pk + 100, self.admin)

    def test_listing(self):
        first = self.make_order(quantity=1)
        second = self.make_order(quantity=1)
        req = cancellation_service.create_cancellation_request(first.pk, self.user, REASON)
        cancellation_service.create_cancellation_request(second.pk, self.user, REASON)
        cancellation_service.reject_cancellation_request(req.pk, self.admin)

        self.assertEqual(cancellation_service.get_pending_requests().count(), 1)
        self.assertEqual(cancellation_service.get_all_requests().count(), 2)
        self.assertEqual(cancellation_service.get_all_requests('REJECTED').count(), 1)
        with self.assertRaises(ValidationError):
            cancellation_service.get_all_requests('MAYBE')


class RefundTests(OrderTestMixin, TestCase):

    def test_one_refund_per_order(self):
        order = self.make_order()
        refund_service.create_refund_for_approved_cancellation(order.pk, REASON)
        with self.assertRaises(ValidationError) as ctx:
            refund_service.create_refund_for_approved_cancellation(order.pk, REASON)
        self.assertEqual(ctx.exception.messages[0], "Refund already exists for this order")

    @mock.patch('payments.gateway.razorpay_client')
    def test_gateway_refund_waits_for_commit(self, client):
        client.payment.refund.return_value = {'id': 'rfnd_2', 'status': 'processed'}
        order = self.make_paid_online_order()

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(RuntimeError):
                with transaction.atomic():
                    refund_service.create_refund_for_approved_cancellation(order.pk, REASON)
                    client.payment.refund.assert_not_called()
                    raise RuntimeError("rolled back")

        self.assertEqual(callbacks, [])
        client.payment.refund.assert_not_called()
        self.assertFalse(OrderRefund.objects.filter(order=order).exists())

    def test_status_update(self):
        order = self.make_order()
        refund_service.create_refund_for_approved_cancellation(order.pk, REASON)

        refund = refund_service.update_refund_status(order.pk, OrderRefund.Status.REFUND_COMPLETED)
        self.assertIsNotNone(refund.completed_at)
        self.assertEqual(refund_service.get_refunds_by_status('REFUND_COMPLETED').count(), 1)

        with self.assertRaises(ValidationError):
            refund_service.update_refund_status(order.pk, 'DONE')
        with self.assertRaises(ValidationError):
            refund_service.update_refund_status(order.pk, '')
        with self.assertRaises(OrderRefund.DoesNotExist):
            refund_service.get_refund_by_order_id('missing')


class InvoiceTests(OrderTestMixin, TestCase):

    def test_pdf(self):
        pdf = build_invoice_pdf(self.make_order())
        self.assertTrue(pdf.startswith(b'%PDF'))


class OrderViewTests(OrderTestMixin, TestCase):

    def post(self, url, data):
        return self.client.post(url, json.dumps(data), content_type='application/json')

    def test_checkout(self):
        self.client.force_login(self.user)
        resp = self.post('/api/orders/checkout/', {
            'cart_items': [{'product_id': self.whey.pk, 'quantity': 1, 'price': 1}],
            'shipping_address': SHIPPING,
        })
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()['order']['total_amount'], 1062.0)
        self.assertTrue(re.match(r'^\d{8}-\d{6}-\d{10}$', resp.json()['order']['id']))

    def test_checkout_validation(self):
        self.client.force_login(self.user)
        resp = self.post('/api/orders/checkout/', {'cart_items': [], 'shipping_address': SHIPPING})
        self.assertEqual(resp.json()['message'], "Cart is empty")
        resp = self.post('/api/orders/checkout/', {
            'cart_items': [{'product_id': self.whey.pk, 'quantity': 0}], 'shipping_address': SHIPPING,
        })
        self.assertEqual(resp.json()['message'], "Quantity must be greater than 0")
        resp = self.post('/api/orders/checkout/', {
            'cart_items': [{'product_id': self.whey.pk, 'quantity': 1}], 'shipping_address': {'name': 'A'},
        })
        self.assertEqual(resp.json()['message'], "Invalid shipping address")

    def test_checkout_requires_login(self):
        resp = self.post('/api/orders/checkout/', {})
        self.assertEqual(resp.status_code, 401)

    def test_my_orders_and_detail(self):
        order = self.make_order()
        self.client.force_login(self.user)
        resp = self.client.get('/api/orders/my/')
        self.assertEqual([o['id'] for o in resp.json()], [order.pk])

        self.client.force_login(self.other)
        resp = self.client.get(f'/api/orders/{order.pk}/')
        self.assertEqual(resp.status_code, 403)
        resp = self.client.get(f'/api/orders/{order.pk}/invoice/')
        self.assertEqual(resp.status_code, 403)
        resp = self.client.get('/api/orders/missing/')
        self.assertEqual(resp.status_code, 404)

    def test_cancellation_flow(self):
        order = self.make_order()
        self.client.force_login(self.user)
        resp = self.post('/api/cancellations/', {'order_id': order.pk, 'reason': REASON})
        self.assertEqual(resp.status_code, 201)
        request_id = resp.json()['data']['id']

        resp = self.client.get(f'/api/cancellations/order/{order.pk}/')
        self.assertEqual(resp.json()['data']['status'], 'PENDING')
        self.assertEqual(self.client.get('/api/cancellations/admin/pending/').status_code, 403)

        self.client.force_login(self.admin)
        resp = self.client.get('/api/cancellations/admin/pending/')
        self.assertEqual(len(resp.json()['data']), 1)
        resp = self.client.post(f'/api/cancellations/{request_id}/approve/')
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.json()['refund'])

    def test_refund_endpoints(self):
        order = self.make_order()
        refund_service.create_refund_for_approved_cancellation(order.pk, REASON)

        self.client.force_login(self.user)
        resp = self.client.get(f'/api/refunds/order/{order.pk}/')
        self.assertEqual(resp.json()['status'], 'INITIATED')

        self.client.force_login(self.other)
        self.assertEqual(self.client.get(f'/api/refunds/order/{order.pk}/').status_code, 403)

        self.client.force_login(self.admin)
        resp = self.client.patch(
            f'/api/refunds/{order.pk}/status/', json.dumps({'status': 'REFUND_COMPLETED'}),
            content_type='application/json',
        )
        self.assertEqual(resp.json()['status'], 'REFUND_COMPLETED')
        resp = self.client.get('/api/refunds/admin/status/REFUND_COMPLETED/')
        self.assertEqual(len(resp.json()), 1)
        resp = self.client.get('/api/refunds/admin/status/BOGUS/')
        self.assertEqual(resp.status_code, 400)
