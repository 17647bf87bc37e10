from django.test import TestCase

from .models import Category, resolve_category


class CategoryTests(TestCase):

    def test_resolve_creates_once(self):
        first = resolve_category('  Protein ')
        second = resolve_category('Protein')
        self.assertEqual(first, second)
        self.assertEqual(Category.objects.count(), 1)
        self.assertIsNone(resolve_category(''))

    def test_list_sorted_by_name(self):
        Category.objects.create(name='Vitamins')
        Category.objects.create(name='Creatine')
        resp = self.client.get('/api/categories/')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([c['name'] for c in resp.json()], ['Creatine', 'Vitamins'])
