# products/utils.py
from storefront.api import money, timestamp


def serialize_product(product):
    return {
        'id': product.id,
        'name': product.name,
        'description': product.description,
        'base_price': money(product.base_price),
        'discount_percent': money(product.discount_percent),
        'gst_percent': money(product.gst_percent),
        'discount_amount': money(product.discount_amount),
        'gst_amount': money(product.gst_amount),
        'final_price': money(product.final_price),
        'stock_quantity': product.stock_quantity,
        'in_stock': product.is_in_stock,
        'flavors': product.flavors or [],
        'sizes': product.sizes or [],
        'image_urls': product.image_urls or [],
        'category_id': product.category_id,
        'category_name': product.category_name,
        'is_featured': product.is_featured,
        'is_special_offer': product.is_special_offer,
        'is_active': product.is_active,
        'created_at': timestamp(product.created_at),
        'updated_at': timestamp(product.updated_at),
    }
