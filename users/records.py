"""
Library user records as returned by the library API
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from library_api.utils import parse_timestamp, to_int

PASSWORD_PREVIEW_LENGTH = 20


@dataclass
class LibraryUser:
    """A borrower account; ``password`` is the API's hash, never plain text"""
    id: int
    name: str = ''
    email: str = ''
    password: str = ''
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data):
        return cls(
            id=to_int(data.get('id')),
            name=data.get('name') or '',
            email=data.get('email') or '',
            password=data.get('password') or '',
            created_at=parse_timestamp(data.get('created_at')),
            updated_at=parse_timestamp(data.get('updated_at')),
        )

    def __str__(self):
        return f"{self.name} <{self.email}>"

    @property
    def password_preview(self):
        if not self.password:
            return ''
        return f"{self.password[:PASSWORD_PREVIEW_LENGTH]}..."
