"""
Library user list controller
"""
from datetime import timedelta

from django.utils import timezone

from librarian.listing import DATE, NUMERIC, TEXT, EntityListController

from .records import LibraryUser

RECENT_DAYS = 7


class UserListController(EntityListController):
    endpoint = '/users'
    record_class = LibraryUser
    verbose_name = 'user'
    search_fields = ('name', 'email')
    sort_fields = {
        'id': NUMERIC,
        'name': TEXT,
        'email': TEXT,
        'created_at': DATE,
        'updated_at': DATE,
    }
    form_defaults = {
        'name': '',
        'email': '',
        'password': '',
    }

    def form_values_for(self, record):
        # The stored hash is never put back into the form
        values = super().form_values_for(record)
        values['password'] = ''
        return values

    def update_payload_for(self, values):
        payload = self.payload_for(values)
        if not payload.get('password'):
            # Blank means "keep the current password"
            payload.pop('password', None)
        return payload

    def stats(self, now=None):
        now = now or timezone.now()
        since = now - timedelta(days=RECENT_DAYS)
        return {
            'total_users': len(self.items),
            'recently_added': sum(
                1 for user in self.items if user.created_at is not None and user.created_at > since
            ),
        }
