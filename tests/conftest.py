import json
from dataclasses import dataclass
from datetime import timedelta

import pytest
import requests
from django.urls import reverse
from django.utils import timezone

API_URL = 'http://api.test/api'
TOKEN = 'secret-token'


@dataclass
class Call:
    method: str
    path: str
    json: object
    authorization: str


class FakeLibraryApi:
    """
    Stands in for the REST API at the requests.Session level

    Routes map (method, path) to a (status, payload) pair, a callable
    taking the JSON body and returning one, or an exception to raise.
    Unknown routes answer 404.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, path, payload=None, status=200):
        self.routes[(method, path)] = (status, payload)

    def fail(self, method, path, exc):
        self.routes[(method, path)] = exc

    def handle(self, session, method, url, **kwargs):
        path = url[len(API_URL):]
        body = kwargs.get('json')
        self.calls.append(Call(method, path, body, session.headers.get('Authorization')))

        route = self.routes.get((method, path), (404, {'message': 'Not Found'}))
        if isinstance(route, Exception):
            raise route
        if callable(route):
            route = route(body)
        status, payload = route

        response = requests.Response()
        response.status_code = status
        response.reason = 'OK' if status < 400 else 'Error'
        response.url = url
        response._content = b'' if payload is None else json.dumps(payload).encode()
        response.headers['Content-Type'] = 'application/json'
        return response

    def calls_to(self, method, path):
        return [call for call in self.calls if call.method == method and call.path == path]


class ScriptedClient:
    """
    ApiClient stand-in for controller tests

    ``get`` answers from a queue: payloads are returned, exceptions raised,
    callables called first.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.sent = []
        self.on_unauthorized = None

    def _next(self):
        response = self.responses.pop(0) if self.responses else []
        if callable(response):
            response = response()
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, path):
        self.sent.append(('GET', path, None))
        return self._next()

    def request(self, method, path, json=None):
        self.sent.append((method, path, json))
        if self.responses and isinstance(self.responses[0], Exception):
            raise self.responses.pop(0)
        return None

    def post(self, path, json=None):
        return self.request('POST', path, json=json)

    def put(self, path, json=None):
        return self.request('PUT', path, json=json)

    def delete(self, path):
        return self.request('DELETE', path)


@pytest.fixture
def api(monkeypatch, settings):
    settings.LIBRARY_API_BASE_URL = API_URL
    fake = FakeLibraryApi()

    def request(session, method, url, **kwargs):
        return fake.handle(session, method, url, **kwargs)

    monkeypatch.setattr(requests.Session, 'request', request)
    return fake


@pytest.fixture
def scripted():
    return ScriptedClient


@pytest.fixture
def notices():
    """Collects (level, message) pairs from a controller's notifier"""
    collected = []

    def notify(level, message):
        collected.append((level, message))

    notify.collected = collected
    return notify


@pytest.fixture
def admin_client(client, api):
    api.add('POST', '/login', {'token': TOKEN, 'user': {'name': 'Admin'}})
    # Following the redirect renders the dashboard, which shows and clears the welcome notice
    response = client.post(reverse('users:login'), {'username': 'admin', 'password': 'secret'}, follow=True)
    assert response.redirect_chain[-1][0] == reverse('librarian:dashboard')
    return client


# ---------- sample payloads ----------

def _iso(value):
    return value.isoformat() if value else None


@pytest.fixture
def book_payloads():
    return [
        {'id': 1, 'title': 'Dune', 'author': 'Frank Herbert', 'isbn': '9780441013593',
         'genre': 'Science Fiction', 'total_copies': 3, 'available_copies': 2,
         'created_at': '2025-01-10T08:00:00Z', 'updated_at': '2025-01-10T08:00:00Z'},
        {'id': 2, 'title': '1984', 'author': 'George Orwell', 'isbn': '9780451524935',
         'genre': 'Dystopia', 'total_copies': 1, 'available_copies': 0,
         'created_at': '2025-02-01T08:00:00Z', 'updated_at': '2025-02-01T08:00:00Z'},
        {'id': 3, 'title': 'Clean Code', 'author': 'Robert C. Martin', 'isbn': '9780132350884',
         'genre': 'Technology', 'total_copies': 2, 'available_copies': 2,
         'created_at': '2025-03-05T08:00:00Z', 'updated_at': '2025-03-05T08:00:00Z'},
    ]


@pytest.fixture
def user_payloads():
    now = timezone.now()
    return [
        {'id': 1, 'name': 'Ada Lovelace', 'email': 'ada@example.com',
         'password': '$2y$10$abcdefghijklmnopqrstuvwxyz0123456789',
         'created_at': _iso(now - timedelta(days=60)), 'updated_at': _iso(now - timedelta(days=60))},
        {'id': 2, 'name': 'Alan Turing', 'email': 'alan@example.com',
         'password': '$2y$10$zyxwvutsrqponmlkjihgfedcba9876543210',
         'created_at': _iso(now - timedelta(days=2)), 'updated_at': _iso(now - timedelta(days=2))},
    ]


@pytest.fixture
def transaction_payloads():
    now = timezone.now()
    return [
        # Active
        {'id': 1, 'user_id': 1, 'book_id': 1,
         'borrowed_at': _iso(now - timedelta(days=1)), 'due_at': _iso(now + timedelta(days=2)),
         'returned_at': None, 'late_fee': 0,
         'user': {'id': 1, 'name': 'Ada Lovelace', 'email': 'ada@example.com'},
         'book': {'id': 1, 'title': 'Dune', 'author': 'Frank Herbert', 'isbn': '9780441013593'}},
        # Overdue
        {'id': 2, 'user_id': 2, 'book_id': 2,
         'borrowed_at': _iso(now - timedelta(days=10)), 'due_at': _iso(now - timedelta(days=3)),
         'returned_at': None, 'late_fee': '1.50',
         'user': {'id': 2, 'name': 'Alan Turing', 'email': 'alan@example.com'},
         'book': {'id': 2, 'title': '1984', 'author': 'George Orwell', 'isbn': '9780451524935'}},
        # Returned after the due date
        {'id': 3, 'user_id': 1, 'book_id': 3,
         'borrowed_at': _iso(now - timedelta(days=20)), 'due_at': _iso(now - timedelta(days=13)),
         'returned_at': _iso(now - timedelta(days=12)), 'late_fee': 2,
         'user': {'id': 1, 'name': 'Ada Lovelace', 'email': 'ada@example.com'},
         'book': {'id': 3, 'title': 'Clean Code', 'author': 'Robert C. Martin', 'isbn': '9780132350884'}},
    ]


@pytest.fixture
def library(api, book_payloads, user_payloads, transaction_payloads):
    """The fake API serving all three collections"""
    api.add('GET', '/books', {'data': book_payloads})
    api.add('GET', '/users', user_payloads)
    api.add('GET', '/transactions', transaction_payloads)
    return api
