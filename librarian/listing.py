"""
Generic list/filter/sort/paginate/CRUD controller for API collections

One instance per page render. The source collection is whatever the API
returned last; the filtered, ordered and paged views are recomputed from it
on every access and never stored.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from django.conf import settings
from django.contrib import messages
from django.core.paginator import Paginator

from library_api.errors import ApiError, UnknownApiError

logger = logging.getLogger(__name__)


ASCENDING = 'asc'
DESCENDING = 'desc'

TEXT = 'text'
NUMERIC = 'numeric'
DATE = 'date'


def _log_notifier(level, message):
    logger.log(logging.ERROR if level >= messages.ERROR else logging.INFO, message)


def load_together(*controllers):
    """
    Run ``load()`` on several controllers at once and wait for all of them

    Each controller keeps its own error; one failing never stops the others.
    """
    if not controllers:
        return []
    with ThreadPoolExecutor(max_workers=len(controllers)) as pool:
        futures = [pool.submit(controller.load) for controller in controllers]
    return [future.result() for future in futures]


class EntityListController:
    """
    Subclasses set:

        endpoint        collection path, e.g. '/books'
        record_class    class with a ``from_api(dict)`` constructor
        search_fields   attributes matched by the search box
        sort_fields     attribute -> TEXT | NUMERIC | DATE
        form_defaults   values of an empty create form
        verbose_name    used in notifications
    """
    endpoint = None
    record_class = None
    search_fields = ()
    sort_fields = {'id': NUMERIC}
    form_defaults = {}
    verbose_name = 'item'
    page_size = None

    def __init__(self, client, notifier=None):
        self.client = client
        self.notifier = notifier or _log_notifier

        # Source of truth
        self.items = []
        self.error = None
        self.loading = False

        # View state
        self.query = ''
        self.sort_key = None
        self.sort_direction = ASCENDING
        self.page_number = 1

        # Form state
        self.form_open = False
        self.editing_id = None
        self.form_values = dict(self.form_defaults)
        self.field_errors = {}

        self._lock = threading.Lock()
        self._issued = 0

        if self.page_size is None:
            self.page_size = settings.LIST_PAGE_SIZE

    # ============= LOADING =============

    def detail_path(self, pk):
        return f"{self.endpoint}/{pk}"

    def parse_collection(self, payload):
        """
        Records from a collection response

        Accepts a bare list or a Laravel resource envelope {"data": [...]}.
        Anything else raises UnknownApiError.
        """
        if payload is None:
            return []
        if isinstance(payload, dict) and 'data' in payload:
            payload = payload['data']
        if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
            raise UnknownApiError(200, f'Unexpected response format from {self.endpoint}')
        return [self.record_class.from_api(item) for item in payload]

    def load(self):
        """
        Replace the source collection with a fresh copy from the API

        Returns True when this call's response was applied. A failure keeps
        the previous collection; a response overtaken by a newer load() is
        dropped.
        """
        with self._lock:
            self._issued += 1
            sequence = self._issued
        self.loading = True

        try:
            payload = self.client.get(self.endpoint)
            records = self.parse_collection(payload)
        except ApiError as e:
            if self._is_stale(sequence):
                logger.debug('Dropping stale %s failure (request %s)', self.endpoint, sequence)
                return False
            self.loading = False
            self._fail(e)
            return False

        with self._lock:
            if sequence != self._issued:
                logger.info(
                    'Discarding stale %s response (request %s, latest %s)',
                    self.endpoint, sequence, self._issued,
                )
                return False
            self.items = records
            self.error = None
            self.loading = False
        return True

    def _is_stale(self, sequence):
        with self._lock:
            return sequence != self._issued

    def _fail(self, error):
        self.error = error.message
        self.field_errors = getattr(error, 'errors', {}) or {}
        self.notifier(messages.ERROR, error.message)

    def record_for(self, pk):
        for record in self.items:
            if record.id == pk:
                return record
        return None

    # ============= DERIVED VIEWS =============

    def set_query(self, text):
        self.query = text or ''
        self.page_number = 1

    def matches(self, record, needle):
        for field in self.search_fields:
            value = getattr(record, field, None)
            if value is not None and needle in str(value).lower():
                return True
        return False

    @property
    def filtered(self):
        if not self.query:
            return list(self.items)
        needle = self.query.lower()
        return [record for record in self.items if self.matches(record, needle)]

    def set_sort(self, field, direction=None):
        """
        Sort by ``field``

        Without a direction, the same field toggles asc/desc and a new field
        starts ascending.
        """
        if field not in self.sort_fields:
            raise ValueError(f'{field!r} is not sortable for {self.endpoint}')
        if direction is None:
            direction = self.sort_direction_for(field)
        elif direction not in (ASCENDING, DESCENDING):
            raise ValueError(f'Unknown sort direction {direction!r}')
        self.sort_key = field
        self.sort_direction = direction

    def sort_direction_for(self, field):
        """Direction a click on ``field``'s header would select"""
        if self.sort_key == field and self.sort_direction == ASCENDING:
            return DESCENDING
        return ASCENDING

    def _sort_value(self, record):
        value = getattr(record, self.sort_key, None)
        if value is None or value == '':
            return (False, 0)
        kind = self.sort_fields[self.sort_key]
        if kind == NUMERIC:
            return (True, float(value))
        if kind == DATE:
            return (True, value.timestamp())
        return (True, str(value))

    @property
    def ordered(self):
        records = self.filtered
        if self.sort_key is None:
            return records
        return sorted(records, key=self._sort_value, reverse=self.sort_direction == DESCENDING)

    def set_page(self, number):
        try:
            number = int(number)
        except (TypeError, ValueError):
            number = 1
        self.page_number = max(number, 1)

    @property
    def paginator(self):
        return Paginator(self.ordered, self.page_size)

    @property
    def page_obj(self):
        # get_page clamps out-of-range numbers to the last page
        return self.paginator.get_page(self.page_number)

    def restore(self, query='', sort=None, direction=None, page=1):
        """Rebuild view state from request parameters"""
        self.set_query(query)
        if sort in self.sort_fields:
            self.set_sort(sort, direction if direction in (ASCENDING, DESCENDING) else ASCENDING)
        self.set_page(page)

    # ============= FORM STATE =============

    def open_create_form(self):
        self.form_open = True
        self.editing_id = None
        self.form_values = dict(self.form_defaults)
        self.field_errors = {}

    def open_edit_form(self, record):
        self.form_open = True
        self.editing_id = record.id
        self.form_values = self.form_values_for(record)
        self.field_errors = {}

    def close_form(self):
        self.form_open = False
        self.editing_id = None
        self.form_values = dict(self.form_defaults)
        self.field_errors = {}

    def form_values_for(self, record):
        return {name: getattr(record, name, default) for name, default in self.form_defaults.items()}

    # ============= MUTATIONS =============

    def payload_for(self, values):
        """JSON body for create/update; subclasses shape and clamp here"""
        return {name: values.get(name, default) for name, default in self.form_defaults.items()}

    def create(self, values, refresh=True):
        self.form_open = True
        self.editing_id = None
        self.form_values = dict(values)
        return self._submit(
            'POST', self.endpoint, self.payload_for(values),
            f'{self.verbose_name.capitalize()} added successfully', refresh,
        )

    def update(self, pk, values, refresh=True):
        self.form_open = True
        self.editing_id = pk
        self.form_values = dict(values)
        return self._submit(
            'PUT', self.detail_path(pk), self.update_payload_for(values),
            f'{self.verbose_name.capitalize()} updated successfully', refresh,
        )

    def update_payload_for(self, values):
        return self.payload_for(values)

    def remove(self, pk, confirmed, refresh=True):
        """
        Delete one record

        Declining the confirmation is not an error: nothing is sent and
        nothing is reported.
        """
        if not confirmed:
            return False
        try:
            self.client.delete(self.detail_path(pk))
        except ApiError as e:
            self._fail(e)
            return False

        self.notifier(messages.SUCCESS, f'{self.verbose_name.capitalize()} deleted successfully')
        if refresh:
            self.load()
        return True

    def _submit(self, method, path, payload, success_message, refresh):
        self.field_errors = {}
        try:
            self.client.request(method, path, json=payload)
        except ApiError as e:
            # The form stays open with what was typed
            self._fail(e)
            return False

        self.close_form()
        self.notifier(messages.SUCCESS, success_message)
        if refresh:
            self.load()
        return True
