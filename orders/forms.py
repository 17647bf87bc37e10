from django import forms

from .models import Order


class CheckoutLineForm(forms.Form):
    product_id = forms.IntegerField(min_value=1)
    quantity = forms.IntegerField()
    flavor = forms.CharField(max_length=100, required=False)
    size = forms.CharField(max_length=100, required=False)


class PlaceOrderForm(forms.Form):
    address_id = forms.IntegerField(min_value=1)
    payment_method = forms.ChoiceField(choices=Order.PaymentMethod.choices, required=False)
    coupon_code = forms.CharField(max_length=64, required=False)

    def clean_payment_method(self):
        return self.cleaned_data['payment_method'] or Order.PaymentMethod.COD


class StatusForm(forms.Form):
    status = forms.ChoiceField(choices=Order.Status.choices)
