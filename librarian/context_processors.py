"""
Sidebar navigation for every console page
"""
from django.urls import reverse

NAVIGATION = [
    ('Dashboard', 'librarian:dashboard'),
    ('Books', 'librarian:books_list'),
    ('Users', 'librarian:users_list'),
    ('Transactions', 'librarian:transactions_list'),
    ('Reports', 'reports:dashboard'),
]


def navigation(request):
    auth = getattr(request, 'auth_session', None)
    if auth is None or not auth.is_authenticated:
        return {'nav_items': [], 'console_authenticated': False}

    items = []
    for label, url_name in NAVIGATION:
        url = reverse(url_name)
        if url == '/':
            active = request.path == url
        else:
            active = request.path.startswith(url)
        items.append({'label': label, 'url': url, 'active': active})
    return {'nav_items': items, 'console_authenticated': True}
