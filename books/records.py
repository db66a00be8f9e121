"""
Book records as returned by the library API
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from library_api.utils import parse_timestamp, to_int


def clamp_available_copies(total_copies, available_copies):
    """
    Keep available copies inside [0, total_copies]

    Only an input aid; the API enforces the real invariant.
    """
    total_copies = max(to_int(total_copies), 0)
    return min(max(to_int(available_copies), 0), total_copies)


@dataclass
class Book:
    id: int
    title: str = ''
    author: str = ''
    isbn: str = ''
    genre: str = ''
    total_copies: int = 0
    available_copies: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data):
        return cls(
            id=to_int(data.get('id')),
            title=data.get('title') or '',
            author=data.get('author') or '',
            isbn=str(data.get('isbn') or ''),
            genre=data.get('genre') or '',
            total_copies=to_int(data.get('total_copies')),
            available_copies=to_int(data.get('available_copies')),
            created_at=parse_timestamp(data.get('created_at')),
            updated_at=parse_timestamp(data.get('updated_at')),
        )

    def __str__(self):
        return f"{self.title} - {self.author}"

    @property
    def is_available(self):
        return self.available_copies > 0

    @property
    def borrowed_copies(self):
        return max(self.total_copies - self.available_copies, 0)
