from django.contrib import messages

import pytest

from books.controllers import BookListController
from librarian.listing import ASCENDING, DESCENDING, load_together
from library_api.errors import NetworkUnreachable, UnknownApiError, ValidationError
from users.controllers import UserListController


@pytest.fixture
def books(scripted, notices, book_payloads):
    client = scripted({'data': book_payloads})
    controller = BookListController(client, notifier=notices)
    controller.load()
    return controller


def titles(records):
    return [record.title for record in records]


# ---------- loading ----------

def test_load_unwraps_data_envelope(books):
    assert titles(books.items) == ['Dune', '1984', 'Clean Code']
    assert books.error is None
    assert not books.loading


def test_load_accepts_bare_list(scripted, user_payloads):
    controller = UserListController(scripted(user_payloads))

    assert controller.load()
    assert [user.name for user in controller.items] == ['Ada Lovelace', 'Alan Turing']


def test_failed_load_keeps_previous_items(books, notices):
    books.client.responses.append(NetworkUnreachable())

    assert not books.load()

    assert len(books.items) == 3
    assert books.error == 'No response received from server. Please check your connection.'
    assert notices.collected[-1] == (messages.ERROR, books.error)


def test_successful_load_clears_error(books, book_payloads):
    books.client.responses.extend([UnknownApiError(500, 'boom'), book_payloads[:1]])
    books.load()
    assert books.error == 'Error: 500 - boom'

    books.load()

    assert books.error is None
    assert titles(books.items) == ['Dune']


def test_stale_response_is_discarded(scripted, book_payloads):
    controller = BookListController(scripted())

    def older_response():
        # A newer load() starts and finishes while this one is in flight
        assert controller.load()
        return book_payloads

    controller.client.responses.extend([older_response, book_payloads[2:]])

    assert not controller.load()
    assert titles(controller.items) == ['Clean Code']


@pytest.mark.parametrize('payload', [
    'maintenance page',
    {'message': 'no data key'},
    [1, 2, 3],
])
def test_unexpected_payload_is_a_load_failure(books, notices, payload):
    books.client.responses.append(payload)

    assert not books.load()

    assert len(books.items) == 3
    assert books.error == 'Error: 200 - Unexpected response format from /books'
    assert notices.collected[-1] == (messages.ERROR, books.error)


def test_empty_body_is_an_empty_collection(scripted):
    controller = BookListController(scripted(None))

    assert controller.load()
    assert controller.items == []


def test_load_together_isolates_failures(scripted, book_payloads, user_payloads):
    books = BookListController(scripted(UnknownApiError(500, 'boom')))
    users = UserListController(scripted(user_payloads))

    assert load_together(books, users) == [False, True]
    assert books.error == 'Error: 500 - boom'
    assert users.error is None
    assert len(users.items) == 2


def test_record_for(books):
    assert books.record_for(3).title == 'Clean Code'
    assert books.record_for(99) is None


# ---------- search ----------

def test_search_is_case_insensitive_across_fields(books):
    books.set_query('ORWELL')
    assert titles(books.filtered) == ['1984']

    books.set_query('technology')
    assert titles(books.filtered) == ['Clean Code']

    books.set_query('978044')
    assert titles(books.filtered) == ['Dune']


def test_empty_search_shows_everything(books):
    books.set_query('')

    assert len(books.filtered) == 3


def test_search_resets_page(books):
    books.page_size = 1
    books.set_page(3)

    books.set_query('d')

    assert books.page_number == 1


def test_search_never_touches_source(books):
    books.set_query('dune')

    assert len(books.items) == 3


# ---------- sorting ----------

def test_sort_toggles_on_same_field(books):
    books.set_sort('title')
    assert books.sort_direction == ASCENDING
    assert titles(books.ordered) == ['1984', 'Clean Code', 'Dune']

    books.set_sort('title')
    assert books.sort_direction == DESCENDING
    assert titles(books.ordered) == ['Dune', 'Clean Code', '1984']


def test_new_field_starts_ascending(books):
    books.set_sort('title')
    books.set_sort('title')

    books.set_sort('available_copies')

    assert books.sort_direction == ASCENDING
    assert [book.available_copies for book in books.ordered] == [0, 2, 2]


def test_numeric_sort_is_not_lexicographic(scripted):
    payload = [{'id': n, 'title': str(n), 'total_copies': n} for n in (10, 9, 100)]
    controller = BookListController(scripted(payload))
    controller.load()

    controller.set_sort('total_copies')

    assert [book.total_copies for book in controller.ordered] == [9, 10, 100]


def test_date_sort(books):
    books.set_sort('created_at', DESCENDING)

    assert titles(books.ordered) == ['Clean Code', '1984', 'Dune']


def test_missing_values_sort_first_ascending(scripted):
    payload = [
        {'id': 1, 'title': 'B', 'genre': 'Poetry'},
        {'id': 2, 'title': 'A', 'genre': None},
    ]
    controller = BookListController(scripted(payload))
    controller.load()

    controller.set_sort('genre')

    assert titles(controller.ordered) == ['A', 'B']


def test_unknown_sort_field_is_rejected(books):
    with pytest.raises(ValueError):
        books.set_sort('password')


def test_sort_keeps_filter(books):
    books.set_query('o')
    books.set_sort('title', DESCENDING)

    assert titles(books.ordered) == ['Dune', 'Clean Code', '1984']


# ---------- pagination ----------

def test_pages(books):
    books.page_size = 2

    books.set_page(1)
    assert titles(books.page_obj) == ['Dune', '1984']

    books.set_page(2)
    assert titles(books.page_obj) == ['Clean Code']
    assert books.page_obj.paginator.num_pages == 2


def test_out_of_range_page_clamps_to_last(books):
    books.page_size = 2
    books.set_page(50)

    assert books.page_obj.number == 2


def test_bad_page_number_falls_back_to_first(books):
    books.set_page('abc')

    assert books.page_number == 1


def test_restore_from_request_params(books):
    books.page_size = 1
    books.restore(query='o', sort='title', direction='desc', page='2')

    assert books.query == 'o'
    assert (books.sort_key, books.sort_direction) == ('title', DESCENDING)
    assert titles(books.page_obj) == ['Clean Code']


def test_restore_ignores_unknown_sort(books):
    books.restore(sort='password', direction='desc')

    assert books.sort_key is None


# ---------- mutations ----------

def test_create_success_closes_form_and_reloads(books, notices, book_payloads):
    books.client.responses.append(book_payloads[:1])
    books.open_create_form()

    assert books.create({'title': 'Emma', 'total_copies': 1, 'available_copies': 1})

    method, path, payload = books.client.sent[-2]
    assert (method, path, payload['title']) == ('POST', '/books', 'Emma')
    assert books.client.sent[-1] == ('GET', '/books', None)
    assert not books.form_open
    assert notices.collected[-1] == (messages.SUCCESS, 'Book added successfully')
    assert titles(books.items) == ['Dune']


def test_create_failure_keeps_form_open(books, notices):
    error = ValidationError('The isbn has already been taken.', errors={'isbn': ['taken']})
    books.client.responses.insert(0, error)
    values = {'title': 'Emma', 'isbn': '9780141439587', 'total_copies': 1, 'available_copies': 1}

    assert not books.create(values)

    assert books.form_open
    assert books.form_values == values
    assert books.field_errors == {'isbn': ['taken']}
    assert books.error == 'The isbn has already been taken.'
    assert notices.collected[-1] == (messages.ERROR, 'The isbn has already been taken.')
    assert len(books.items) == 3


def test_update_puts_to_detail_path(books, notices):
    books.open_edit_form(books.record_for(1))
    assert books.form_values['title'] == 'Dune'

    assert books.update(1, dict(books.form_values, title='Dune Messiah'), refresh=False)

    method, path, payload = books.client.sent[-1]
    assert (method, path, payload['title']) == ('PUT', '/books/1', 'Dune Messiah')
    assert notices.collected[-1] == (messages.SUCCESS, 'Book updated successfully')


def test_remove_requires_confirmation(books, notices):
    sent = len(books.client.sent)

    assert not books.remove(1, confirmed=False)

    assert len(books.client.sent) == sent
    assert notices.collected == []


def test_remove_confirmed(books, notices):
    assert books.remove(2, confirmed=True, refresh=False)

    assert books.client.sent[-1] == ('DELETE', '/books/2', None)
    assert notices.collected[-1] == (messages.SUCCESS, 'Book deleted successfully')


def test_remove_failure_is_reported(books, notices):
    books.client.responses.insert(0, UnknownApiError(409, 'Book has active loans'))

    assert not books.remove(1, confirmed=True)

    assert notices.collected[-1] == (messages.ERROR, 'Error: 409 - Book has active loans')


def test_close_form_resets_values(books):
    books.open_edit_form(books.record_for(1))

    books.close_form()

    assert not books.form_open
    assert books.editing_id is None
    assert books.form_values == BookListController.form_defaults
