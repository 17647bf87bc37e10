from django.http import JsonResponse
from django.views.decorators.http import require_GET

from storefront.api import timestamp
from .models import Category


def serialize_category(category):
    return {'id': category.id, 'name': category.name, 'created_at': timestamp(category.created_at)}


@require_GET
def category_list(request):
    categories = Category.objects.order_by('name')
    return JsonResponse([serialize_category(c) for c in categories], safe=False)
