# forms.py
from django import forms
from decimal import Decimal


class JSONListField(forms.Field):
    """Accepts a JSON array of strings (already decoded from the request body)."""

    def to_python(self, value):
        if value in (None, ''):
            return []
        if isinstance(value, str):
            value = value.split(',')
        if not isinstance(value, (list, tuple)):
            raise forms.ValidationError("Must be a list.")
        cleaned = []
        for item in value:
            if not isinstance(item, str):
                raise forms.ValidationError("List items must be strings.")
            item = item.strip()
            if item:
                cleaned.append(item)
        return cleaned


class ProductForm(forms.Form):
    name = forms.CharField(max_length=255)
    description = forms.CharField(required=False)
    category = forms.CharField(max_length=255, required=False)

    base_price = forms.DecimalField(min_value=Decimal('0.00'), max_digits=10, decimal_places=2)
    discount_percent = forms.DecimalField(
        min_value=Decimal('0'), max_value=Decimal('100'), max_digits=5, decimal_places=2, required=False
    )
    gst_percent = forms.DecimalField(
        min_value=Decimal('0'), max_value=Decimal('100'), max_digits=5, decimal_places=2, required=False
    )
    stock_quantity = forms.IntegerField(min_value=0, required=False)

    flavors = JSONListField(required=False)
    sizes = JSONListField(required=False)
    image_urls = JSONListField(required=False)

    is_featured = forms.BooleanField(required=False)
    is_special_offer = forms.BooleanField(required=False)
    is_active = forms.BooleanField(required=False)

    def clean_name(self):
        name = self.cleaned_data['name'].strip()
        if not name:
            raise forms.ValidationError("Product name is required.")
        return name

    def clean_image_urls(self):
        urls = self.cleaned_data['image_urls']
        for url in urls:
            if not url.startswith(('http://', 'https://', '/')):
                raise forms.ValidationError(f"Invalid image URL: {url}")
        return urls


class ProductUpdateForm(ProductForm):
    """Partial update: every field optional, only supplied keys are written."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field in self.fields.values():
            field.required = False

    def clean_name(self):
        name = (self.cleaned_data.get('name') or '').strip()
        if 'name' in self.data and not name:
            raise forms.ValidationError("Product name cannot be blank.")
        return name
