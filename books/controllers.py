"""
Book list controller
"""
from librarian.listing import DATE, NUMERIC, TEXT, EntityListController

from .records import Book, clamp_available_copies


class BookListController(EntityListController):
    endpoint = '/books'
    record_class = Book
    verbose_name = 'book'
    search_fields = ('title', 'author', 'isbn', 'genre')
    sort_fields = {
        'id': NUMERIC,
        'title': TEXT,
        'author': TEXT,
        'isbn': TEXT,
        'genre': TEXT,
        'total_copies': NUMERIC,
        'available_copies': NUMERIC,
        'created_at': DATE,
        'updated_at': DATE,
    }
    form_defaults = {
        'title': '',
        'author': '',
        'isbn': '',
        'genre': '',
        'total_copies': 1,
        'available_copies': 1,
    }

    def payload_for(self, values):
        payload = super().payload_for(values)
        payload['available_copies'] = clamp_available_copies(
            payload['total_copies'], payload['available_copies'],
        )
        return payload

    @property
    def borrowable(self):
        return [book for book in self.items if book.is_available]

    def stats(self):
        return {
            'total_books': len(self.items),
            'total_copies': sum(book.total_copies for book in self.items),
            'available_copies': sum(book.available_copies for book in self.items),
            'unique_genres': len({book.genre for book in self.items if book.genre}),
        }
