# coupons/forms.py
from django import forms


class CouponCreateForm(forms.Form):
    trainer_name = forms.CharField(max_length=120, required=False)
    trainer_id = forms.CharField(max_length=64, required=False)
    # Range checks live in services.create_coupon so every caller gets them
    discount_percent = forms.DecimalField(max_digits=6, decimal_places=2, required=False)
    max_uses = forms.IntegerField(required=False)
    expiry_date = forms.DateTimeField(required=False)

    def clean_trainer_name(self):
        name = self.cleaned_data['trainer_name'].strip()
        if not name:
            raise forms.ValidationError("Trainer name is required")
        return name


class CouponCodeForm(forms.Form):
    coupon_code = forms.CharField(max_length=64, required=False)

    def clean_coupon_code(self):
        code = self.cleaned_data['coupon_code'].strip()
        if not code:
            raise forms.ValidationError("Coupon code is required")
        return code


class ApplyCouponForm(CouponCodeForm):
    order_id = forms.CharField(max_length=32, required=False)

    def clean_order_id(self):
        order_id = self.cleaned_data['order_id'].strip()
        if not order_id:
            raise forms.ValidationError("Order ID is required")
        return order_id
