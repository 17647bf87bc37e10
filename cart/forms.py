from django import forms


class CartLineForm(forms.Form):
    product_id = forms.IntegerField(min_value=1)
    quantity = forms.IntegerField(min_value=1)
    flavor = forms.CharField(max_length=100, required=False)
    size = forms.CharField(max_length=100, required=False)


class CartRemoveForm(forms.Form):
    product_id = forms.IntegerField(min_value=1)
    flavor = forms.CharField(max_length=100, required=False)
    size = forms.CharField(max_length=100, required=False)
