# forms.py
from django import forms
from .models import Address


class AddressForm(forms.ModelForm):
    class Meta:
        model = Address
        fields = ['name', 'phone', 'address', 'city', 'state', 'pincode']

    def clean_phone(self):
        p = self.cleaned_data['phone'].strip()
        if len(p) < 7:
            raise forms.ValidationError('Enter a valid phone number.')
        return p

    def clean_pincode(self):
        return self.cleaned_data['pincode'].strip()


class ShippingAddressForm(forms.Form):
    """Address captured inline at checkout (not saved to the address book)."""
    name = forms.CharField(max_length=120)
    phone = forms.CharField(max_length=20)
    address = forms.CharField(max_length=255)
    city = forms.CharField(max_length=120)
    state = forms.CharField(max_length=120, required=False)
    pincode = forms.CharField(max_length=12)


class ProfileForm(forms.Form):
    name = forms.CharField(max_length=150, required=False)
    email = forms.EmailField(required=False)
    phone = forms.CharField(max_length=20, required=False)


class LoginForm(forms.Form):
    username = forms.CharField(max_length=254)
    password = forms.CharField(max_length=128, strip=False)
