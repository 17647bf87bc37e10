# products/views.py
import logging

from django.db import transaction
from django.db.models import ProtectedError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from category.models import resolve_category
from storefront.api import api_staff_required, error_response, form_error_message, json_errors, parse_json
from .forms import ProductForm, ProductUpdateForm
from .models import Product
from .utils import serialize_product

logger = logging.getLogger(__name__)

TRUTHY = ('1', 'true', 'yes', 'on')

# Model fields copied straight from cleaned form data
EDITABLE_FIELDS = (
    'name', 'description', 'base_price', 'discount_percent', 'gst_percent', 'stock_quantity',
    'flavors', 'sizes', 'image_urls', 'is_featured', 'is_special_offer', 'is_active',
)


""" .......................................................Catalogue..................................... """

@require_GET
def product_list(request):
    products = Product.objects.filter(is_active=True).select_related('category')

    category = request.GET.get('category', '').strip()
    if category:
        products = products.filter(category_name__iexact=category)
    if request.GET.get('featured', '').lower() in TRUTHY:
        products = products.filter(is_featured=True)
    if request.GET.get('special_offer', '').lower() in TRUTHY:
        products = products.filter(is_special_offer=True)

    search = request.GET.get('q', '').strip()
    if search:
        products = products.filter(name__icontains=search)

    return JsonResponse([serialize_product(p) for p in products], safe=False)


@require_GET
def product_detail(request, pk):
    product = get_object_or_404(Product, pk=pk, is_active=True)
    return JsonResponse(serialize_product(product))


""" .......................................................Admin..................................... """

@api_staff_required
@require_GET
def admin_product_list(request):
    """Staff listing includes inactive products."""
    products = Product.objects.select_related('category')
    return JsonResponse([serialize_product(p) for p in products], safe=False)


@api_staff_required
@require_POST
@json_errors
def admin_product_create(request):
    data = parse_json(request)
    form = ProductForm(data)
    if not form.is_valid():
        return error_response(form_error_message(form), errors=form.errors)

    cleaned = form.cleaned_data
    with transaction.atomic():
        product = Product(
            name=cleaned['name'],
            description=cleaned['description'],
            base_price=cleaned['base_price'],
            discount_percent=cleaned['discount_percent'] or 0,
            gst_percent=cleaned['gst_percent'] or 0,
            stock_quantity=cleaned['stock_quantity'] or 0,
            flavors=cleaned['flavors'],
            sizes=cleaned['sizes'],
            image_urls=cleaned['image_urls'],
            is_featured=cleaned['is_featured'],
            is_special_offer=cleaned['is_special_offer'],
            # New products are live unless explicitly created inactive
            is_active=cleaned['is_active'] if 'is_active' in data else True,
            category=resolve_category(cleaned['category']),
        )
        product.full_clean()
        product.save()

    logger.info("Product %s created by %s", product.pk, request.user.pk)
    return JsonResponse(serialize_product(product), status=201)


@api_staff_required
@require_http_methods(["PUT", "PATCH"])
@json_errors
def admin_product_update(request, pk):
    product = get_object_or_404(Product, pk=pk)
    data = parse_json(request)
    form = ProductUpdateForm(data)
    if not form.is_valid():
        return error_response(form_error_message(form), errors=form.errors)

    cleaned = form.cleaned_data
    with transaction.atomic():
        product = Product.objects.select_for_update().get(pk=pk)
        for field in EDITABLE_FIELDS:
            if field not in data or cleaned.get(field) is None:
                continue
            setattr(product, field, cleaned[field])
        if 'category' in data:
            product.category = resolve_category(cleaned['category'])
        product.full_clean()
        product.save()

    logger.info("Product %s updated by %s", product.pk, request.user.pk)
    return JsonResponse(serialize_product(product))


@api_staff_required
@require_http_methods(["DELETE"])
@json_errors
def admin_product_delete(request, pk):
    product = get_object_or_404(Product, pk=pk)
    try:
        product.delete()
    except ProtectedError:
        # Ordered products are kept for order history; hide them instead
        product.is_active = False
        product.save(update_fields=['is_active', 'updated_at'])
        logger.info("Product %s has orders, deactivated instead of deleted", pk)
        return JsonResponse({'success': True, 'message': 'Product has orders and was deactivated'})

    logger.info("Product %s deleted by %s", pk, request.user.pk)
    return JsonResponse({'success': True, 'message': 'Product deleted successfully'})
