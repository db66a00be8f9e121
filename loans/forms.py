from datetime import timedelta

from django import forms
from django.utils import timezone

LOAN_DAYS = 7


def default_due_date():
    return timezone.localdate() + timedelta(days=LOAN_DAYS)


class BorrowForm(forms.Form):
    """
    Lend a book

    ``books`` should already be limited to titles with copies available;
    anything else is simply not a valid choice.
    """
    user_id = forms.TypedChoiceField(coerce=int, label='User')
    book_id = forms.TypedChoiceField(coerce=int, label='Book')
    due_at = forms.DateField(
        label='Due date',
        initial=default_due_date,
        widget=forms.DateInput(attrs={'type': 'date'}),
    )

    def __init__(self, *args, users=(), books=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['user_id'].choices = [('', 'Select a user')] + [
            (user.id, f"{user.name} ({user.email})") for user in users
        ]
        self.fields['book_id'].choices = [('', 'Select a book')] + [
            (book.id, f"{book.title} - {book.available_copies} available") for book in books
        ]


class TransactionForm(forms.Form):
    due_at = forms.DateField(label='Due date', widget=forms.DateInput(attrs={'type': 'date'}))
    returned_at = forms.DateField(
        label='Returned on',
        required=False,
        widget=forms.DateInput(attrs={'type': 'date'}),
    )
    late_fee = forms.DecimalField(min_value=0, decimal_places=2, initial=0)

