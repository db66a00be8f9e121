"""
Borrow/return transactions as returned by the library API
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from django.utils import timezone

from library_api.utils import parse_timestamp, to_float, to_int

ACTIVE = 'Active'
OVERDUE = 'Overdue'
RETURNED = 'Returned'

STATUS_CHOICES = [
    ('active', ACTIVE),
    ('overdue', OVERDUE),
    ('returned', RETURNED),
]


def transaction_status(returned_at, due_at, now=None):
    """
    Derive a transaction's status

    Returned wins over everything; otherwise a due date in the past means
    overdue. A missing due date can never be overdue.
    """
    if returned_at is not None:
        return RETURNED
    now = now or timezone.now()
    if due_at is not None and due_at < now:
        return OVERDUE
    return ACTIVE


@dataclass
class Transaction:
    id: int
    user_id: int
    book_id: int
    borrowed_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    returned_at: Optional[datetime] = None
    late_fee: float = 0.0
    user: dict = field(default_factory=dict)
    book: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, data):
        return cls(
            id=to_int(data.get('id')),
            user_id=to_int(data.get('user_id')),
            book_id=to_int(data.get('book_id')),
            borrowed_at=parse_timestamp(data.get('borrowed_at')),
            due_at=parse_timestamp(data.get('due_at')),
            returned_at=parse_timestamp(data.get('returned_at')),
            late_fee=to_float(data.get('late_fee')),
            user=data.get('user') or {},
            book=data.get('book') or {},
        )

    def __str__(self):
        return f"{self.user_name} - {self.book_title}"

    # Joined fields, used for search and display
    @property
    def user_name(self):
        return self.user.get('name') or ''

    @property
    def user_email(self):
        return self.user.get('email') or ''

    @property
    def book_title(self):
        return self.book.get('title') or ''

    @property
    def book_author(self):
        return self.book.get('author') or ''

    @property
    def book_isbn(self):
        return str(self.book.get('isbn') or '')

    def status(self, now=None):
        return transaction_status(self.returned_at, self.due_at, now=now)

    def days_until_due(self, now=None):
        """Days left before the due date; negative once overdue"""
        if self.returned_at is not None or self.due_at is None:
            return 0
        now = now or timezone.now()
        return (self.due_at - now).days
