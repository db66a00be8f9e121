from django import forms

from .records import clamp_available_copies


class BookForm(forms.Form):
    title = forms.CharField(max_length=300)
    author = forms.CharField(max_length=200)
    isbn = forms.CharField(max_length=20, label='ISBN')
    genre = forms.CharField(max_length=100)
    total_copies = forms.IntegerField(min_value=0, initial=1)
    available_copies = forms.IntegerField(initial=1)

    def clean(self):
        cleaned_data = super().clean()
        total = cleaned_data.get('total_copies')
        available = cleaned_data.get('available_copies')

        # Available copies can never leave [0, total]
        if total is not None and available is not None:
            cleaned_data['available_copies'] = clamp_available_copies(total, available)
        return cleaned_data
