"""
Borrow/return workflow on top of the generic list controller
"""
from datetime import date, datetime

from django.contrib import messages

from books.controllers import BookListController
from librarian.listing import DATE, NUMERIC, TEXT, EntityListController, load_together
from library_api.errors import ApiError
from library_api.utils import to_float, to_int
from users.controllers import UserListController

from .records import ACTIVE, OVERDUE, RETURNED, STATUS_CHOICES, Transaction

STATUS_FILTERS = dict(STATUS_CHOICES)


def serialize_value(value):
    """Form values -> JSON: dates as ISO strings, blanks as null"""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value == '':
        return None
    return value


class TransactionWorkflowController(EntityListController):
    """
    Transactions list plus the borrow -> return lifecycle

    Keeps its own book and user controllers: the borrow form offers their
    records as choices, and borrowing or returning changes book availability
    so both lists are resynced afterwards.
    """
    endpoint = '/transactions'
    record_class = Transaction
    verbose_name = 'transaction'
    search_fields = ('user_name', 'book_title', 'book_isbn')
    sort_fields = {
        'id': NUMERIC,
        'user_name': TEXT,
        'book_title': TEXT,
        'borrowed_at': DATE,
        'due_at': DATE,
        'returned_at': DATE,
        'late_fee': NUMERIC,
    }
    form_defaults = {
        'due_at': '',
        'returned_at': '',
        'late_fee': 0,
    }
    borrow_defaults = {
        'user_id': '',
        'book_id': '',
        'due_at': '',
    }

    def __init__(self, client, notifier=None, books=None, users=None):
        super().__init__(client, notifier=notifier)
        self.books = books or BookListController(client, notifier=notifier)
        self.users = users or UserListController(client, notifier=notifier)
        self.status_filter = ''

    # ============= LOADING =============

    def load_choices(self):
        """Books and users for the borrow form, fetched together"""
        return load_together(self.books, self.users)

    def load_all(self):
        return load_together(self, self.books, self.users)

    def _resync(self):
        load_together(self, self.books)

    # ============= DERIVED VIEWS =============

    def set_status_filter(self, status):
        self.status_filter = status if status in STATUS_FILTERS else ''
        self.page_number = 1

    @property
    def filtered(self):
        records = super().filtered
        if not self.status_filter:
            return records
        wanted = STATUS_FILTERS[self.status_filter]
        return [txn for txn in records if txn.status() == wanted]

    @property
    def borrowable_books(self):
        return self.books.borrowable

    def status_of(self, transaction, now=None):
        return transaction.status(now=now)

    def counts(self, now=None):
        counts = {ACTIVE: 0, OVERDUE: 0, RETURNED: 0}
        for txn in self.items:
            counts[txn.status(now=now)] += 1
        return counts

    def overdue(self, now=None):
        records = [txn for txn in self.items if txn.status(now=now) == OVERDUE]
        return sorted(records, key=lambda txn: txn.due_at)

    def total_late_fees(self):
        return sum(txn.late_fee for txn in self.items)

    # ============= FORMS =============

    def open_borrow_form(self):
        self.form_open = True
        self.editing_id = None
        self.form_values = dict(self.borrow_defaults)
        self.field_errors = {}

    def form_values_for(self, record):
        return {
            'due_at': record.due_at.date() if record.due_at else '',
            'returned_at': record.returned_at.date() if record.returned_at else '',
            'late_fee': record.late_fee,
        }

    def payload_for(self, values):
        return {
            'due_at': serialize_value(values.get('due_at')),
            'returned_at': serialize_value(values.get('returned_at')),
            'late_fee': to_float(values.get('late_fee')),
        }

    # ============= WORKFLOW =============

    def borrow(self, user_id, book_id, due_at, refresh=True):
        """
        Lend a book to a user

        Only books with copies left can be borrowed; anything else is
        refused here without calling the API.
        """
        self.form_open = True
        self.editing_id = None
        self.form_values = {'user_id': user_id, 'book_id': book_id, 'due_at': due_at}
        self.field_errors = {}

        book_id = to_int(book_id, default=None)
        if book_id not in {book.id for book in self.borrowable_books}:
            self.error = 'The selected book has no copies available.'
            self.field_errors = {'book_id': [self.error]}
            self.notifier(messages.ERROR, self.error)
            return False

        payload = {
            'user_id': to_int(user_id, default=None),
            'book_id': book_id,
            'due_at': serialize_value(due_at),
        }
        try:
            self.client.post('/borrow', json=payload)
        except ApiError as e:
            self._fail(e)
            return False

        self.close_form()
        self.notifier(messages.SUCCESS, 'Book borrowed successfully')
        if refresh:
            self._resync()
        return True

    def return_book(self, pk, confirmed, refresh=True):
        """
        Mark a transaction returned

        Declining the confirmation sends nothing and reports nothing.
        """
        if not confirmed:
            return False
        try:
            self.client.post(f'/return/{pk}', json={})
        except ApiError as e:
            self._fail(e)
            return False

        self.notifier(messages.SUCCESS, 'Book returned successfully')
        if refresh:
            self._resync()
        return True
