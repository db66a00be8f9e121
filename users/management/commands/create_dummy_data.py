import random
from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from books.controllers import BookListController
from library_api.client import build_client
from library_api.errors import ApiError
from loans.controllers import TransactionWorkflowController
from users.controllers import UserListController


USERS_DATA = [
    {'name': 'Ahmad Rizki', 'email': 'ahmad.rizki@example.com', 'password': 'password123'},
    {'name': 'Siti Nurhaliza', 'email': 'siti.nurhaliza@example.com', 'password': 'password123'},
    {'name': 'Budi Santoso', 'email': 'budi.santoso@example.com', 'password': 'password123'},
    {'name': 'Dewi Lestari', 'email': 'dewi.lestari@example.com', 'password': 'password123'},
    {'name': 'Eko Prasetyo', 'email': 'eko.prasetyo@example.com', 'password': 'password123'},
]

BOOKS_DATA = [
    {'title': 'Laskar Pelangi', 'author': 'Andrea Hirata', 'isbn': '9789793062792',
     'genre': 'Fiction', 'total_copies': 3, 'available_copies': 3},
    {'title': 'Bumi Manusia', 'author': 'Pramoedya Ananta Toer', 'isbn': '9789799731234',
     'genre': 'Fiction', 'total_copies': 2, 'available_copies': 2},
    {'title': 'Sapiens', 'author': 'Yuval Noah Harari', 'isbn': '9780062316097',
     'genre': 'History', 'total_copies': 2, 'available_copies': 2},
    {'title': 'Clean Code', 'author': 'Robert C. Martin', 'isbn': '9780132350884',
     'genre': 'Technology', 'total_copies': 1, 'available_copies': 1},
    {'title': 'The Pragmatic Programmer', 'author': 'Andrew Hunt', 'isbn': '9780135957059',
     'genre': 'Technology', 'total_copies': 2, 'available_copies': 2},
]


class Command(BaseCommand):
    help = 'Fill the library API with dummy users, books and borrowings'

    def add_arguments(self, parser):
        parser.add_argument('--username', required=True, help='Administrator username on the API')
        parser.add_argument('--password', required=True, help='Administrator password on the API')
        parser.add_argument('--borrowings', type=int, default=3, help='Number of books to lend out')

    def handle(self, *args, **options):
        self.stdout.write('Creating dummy data...')

        client = build_client()
        try:
            self.seed(client, options)
        finally:
            client.close()

        self.stdout.write(self.style.SUCCESS('✓ Dummy data created successfully!'))

    def seed(self, client, options):
        try:
            payload = client.post('/login', json={
                'username': options['username'],
                'password': options['password'],
            })
        except ApiError as e:
            raise CommandError(f'Login failed: {e.message}')

        token = (payload or {}).get('token')
        if not token:
            raise CommandError('Login failed: the API did not issue a token')
        client.set_token(token)

        self.create_users(client)
        self.create_books(client)
        self.create_borrowings(client, options['borrowings'])

    def _notifier(self, level, message):
        self.stdout.write(f'  {message}')

    def create_users(self, client):
        """Create dummy users that do not exist yet"""
        users = UserListController(client, notifier=self._notifier)
        users.load()
        existing = {user.email for user in users.items}

        for data in USERS_DATA:
            if data['email'] in existing:
                continue
            if users.create(data, refresh=False):
                self.stdout.write(f'✓ User created: {data["name"]}')

    def create_books(self, client):
        """Create dummy books that do not exist yet"""
        books = BookListController(client, notifier=self._notifier)
        books.load()
        existing = {book.isbn for book in books.items}

        for data in BOOKS_DATA:
            if data['isbn'] in existing:
                continue
            if books.create(data, refresh=False):
                self.stdout.write(f'✓ Book created: {data["title"]} ({data["total_copies"]} copies)')

    def create_borrowings(self, client, count):
        """Lend random available books to random users"""
        workflow = TransactionWorkflowController(client, notifier=self._notifier)
        workflow.load_choices()

        if not workflow.users.items or not workflow.borrowable_books:
            self.stdout.write(self.style.WARNING('No users or books available for borrowing'))
            return

        for _ in range(count):
            books = workflow.borrowable_books
            if not books:
                break

            user = random.choice(workflow.users.items)
            book = random.choice(books)
            due_at = timezone.localdate() + timedelta(days=random.randint(1, 14))

            if workflow.borrow(user.id, book.id, due_at):
                self.stdout.write(f'✓ Borrowing created: {user.name} - {book.title}')
