import json
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase

from category.models import Category
from .models import Product, StockTransaction

User = get_user_model()


def make_product(**kwargs):
    defaults = {
        'name': 'Whey Protein',
        'base_price': Decimal('1000.00'),
        'discount_percent': Decimal('10'),
        'gst_percent': Decimal('18'),
        'stock_quantity': 10,
    }
    defaults.update(kwargs)
    return Product.objects.create(**defaults)


class ProductPricingTests(TestCase):

    def test_final_price_applies_discount_then_gst(self):
        product = make_product()
        self.assertEqual(product.discount_amount, Decimal('100.00'))
        self.assertEqual(product.selling_price, Decimal('900.00'))
        self.assertEqual(product.gst_amount, Decimal('162.00'))
        self.assertEqual(product.final_price, Decimal('1062.00'))

    def test_final_price_recomputed_on_save(self):
        product = make_product()
        product.discount_percent = Decimal('0')
        product.save()
        product.refresh_from_db()
        self.assertEqual(product.final_price, Decimal('1180.00'))

    def test_category_name_synced(self):
        category = Category.objects.create(name='Protein')
        product = make_product(category=category)
        self.assertEqual(product.category_name, 'Protein')


class ProductStockTests(TestCase):

    def test_reserve_stock_decrements_and_logs(self):
        product = make_product(stock_quantity=5)
        product.reserve_stock(3, reference='ORDER-1')
        product.refresh_from_db()
        self.assertEqual(product.stock_quantity, 2)
        txn = StockTransaction.objects.get(product=product)
        self.assertEqual(txn.quantity, -3)
        self.assertEqual((txn.stock_before, txn.stock_after), (5, 2))
        self.assertEqual(txn.reference, 'ORDER-1')

    def test_reserve_stock_insufficient(self):
        product = make_product(stock_quantity=2)
        with self.assertRaises(ValidationError) as ctx:
            product.reserve_stock(3)
        self.assertEqual(
            ctx.exception.messages[0],
            "Insufficient stock for Whey Protein. Available: 2, Requested: 3",
        )
        product.refresh_from_db()
        self.assertEqual(product.stock_quantity, 2)

    def test_release_stock(self):
        product = make_product(stock_quantity=2)
        product.release_stock(4)
        product.refresh_from_db()
        self.assertEqual(product.stock_quantity, 6)


class ProductViewTests(TestCase):

    def setUp(self):
        self.staff = User.objects.create_user('admin', 'admin@example.com', 'pass', is_staff=True)
        self.customer = User.objects.create_user('cust', 'cust@example.com', 'pass')
        self.protein = Category.objects.create(name='Protein')

    def test_list_filters(self):
        make_product(name='A', category=self.protein, is_featured=True)
        make_product(name='B', is_special_offer=True)
        make_product(name='Hidden', is_active=False)

        names = [p['name'] for p in self.client.get('/api/products/').json()]
        self.assertCountEqual(names, ['A', 'B'])

        res = self.client.get('/api/products/', {'category': 'protein'})
        self.assertEqual([p['name'] for p in res.json()], ['A'])

        res = self.client.get('/api/products/', {'featured': 'true'})
        self.assertEqual([p['name'] for p in res.json()], ['A'])

        res = self.client.get('/api/products/', {'special_offer': '1'})
        self.assertEqual([p['name'] for p in res.json()], ['B'])

    def test_detail_and_missing(self):
        product = make_product()
        res = self.client.get(f'/api/products/{product.pk}/')
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()['final_price'], 1062.0)
        self.assertEqual(self.client.get('/api/products/999999/').status_code, 404)

    def test_admin_create_with_new_category(self):
        self.client.force_login(self.staff)
        payload = {
            'name': 'Creatine',
            'base_price': '500',
            'gst_percent': '12',
            'stock_quantity': 20,
            'flavors': ['Unflavoured'],
            'sizes': ['250g', '500g'],
            'category': 'Performance',
        }
        res = self.client.post('/api/products/admin/create/', json.dumps(payload), content_type='application/json')
        self.assertEqual(res.status_code, 201)
        body = res.json()
        self.assertEqual(body['category_name'], 'Performance')
        self.assertEqual(body['final_price'], 560.0)
        self.assertTrue(body['is_active'])
        self.assertTrue(Category.objects.filter(name='Performance').exists())

    def test_admin_create_requires_staff(self):
        self.client.force_login(self.customer)
        res = self.client.post('/api/products/admin/create/', json.dumps({'name': 'X', 'base_price': '1'}),
                               content_type='application/json')
        self.assertEqual(res.status_code, 403)

    def test_admin_update_only_touches_supplied_fields(self):
        product = make_product(is_featured=True)
        self.client.force_login(self.staff)
        res = self.client.patch(f'/api/products/admin/{product.pk}/', json.dumps({'stock_quantity': 3}),
                                content_type='application/json')
        self.assertEqual(res.status_code, 200)
        product.refresh_from_db()
        self.assertEqual(product.stock_quantity, 3)
        self.assertTrue(product.is_featured)
        self.assertEqual(product.name, 'Whey Protein')

    def test_admin_delete(self):
        product = make_product()
        self.client.force_login(self.staff)
        res = self.client.delete(f'/api/products/admin/{product.pk}/delete/')
        self.assertEqual(res.status_code, 200)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())
