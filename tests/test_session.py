import pytest

from library_api.client import ApiClient
from library_api.errors import Unauthorized
from users.session import (
    AUTHENTICATED,
    FORCED,
    LOADING,
    UNAUTHENTICATED,
    USER_LOGOUT,
    AuthSession,
    SessionStateError,
)

from conftest import API_URL


@pytest.fixture
def client():
    return ApiClient(API_URL)


def _session(storage, client):
    auth = AuthSession(storage, client=client)
    auth.initialize()
    return auth


# ---------- initialize ----------

def test_starts_loading(client):
    auth = AuthSession({}, client=client)

    assert auth.state == LOADING
    assert auth.is_loading


def test_without_token_resolves_unauthenticated(client):
    auth = AuthSession({}, client=client)

    assert auth.initialize() == UNAUTHENTICATED
    assert not auth.redirect_requested


def test_protected_route_without_token_requests_redirect(client):
    auth = AuthSession({}, client=client)
    auth.initialize(requires_auth=True)

    assert auth.redirect_requested


def test_persisted_token_resolves_authenticated(client):
    auth = _session({'token': 'abc'}, client)

    assert auth.state == AUTHENTICATED
    assert auth.token == 'abc'
    assert client.http.headers['Authorization'] == 'Bearer abc'


def test_initialize_twice_changes_nothing(client):
    auth = _session({'token': 'abc'}, client)

    assert auth.initialize() == AUTHENTICATED


# ---------- login / logout ----------

def test_login_persists_token(client):
    storage = {}
    auth = _session(storage, client)

    auth.login('new-token')

    assert storage['token'] == 'new-token'
    assert auth.is_authenticated
    assert client.token == 'new-token'


def test_login_with_empty_token_is_refused(client):
    auth = _session({}, client)

    with pytest.raises(ValueError):
        auth.login('')
    assert auth.state == UNAUTHENTICATED


def test_login_while_loading_is_refused(client):
    auth = AuthSession({}, client=client)

    with pytest.raises(SessionStateError):
        auth.login('abc')


def test_login_while_logged_in_is_refused(client):
    storage = {'token': 'old'}
    auth = _session(storage, client)

    with pytest.raises(SessionStateError):
        auth.login('new')

    assert storage['token'] == 'old'
    assert client.token == 'old'
    assert auth.is_authenticated


def test_login_again_after_logout(client):
    storage = {'token': 'old'}
    auth = _session(storage, client)
    auth.logout()

    auth.login('new')

    assert storage['token'] == 'new'
    assert auth.is_authenticated


def test_logout_clears_token(client):
    storage = {'token': 'abc'}
    auth = _session(storage, client)

    auth.logout()

    assert 'token' not in storage
    assert auth.state == UNAUTHENTICATED
    assert auth.end_reason == USER_LOGOUT
    assert auth.redirect_requested
    assert 'Authorization' not in client.http.headers


def test_logout_when_logged_out_is_an_error(client):
    auth = _session({}, client)

    with pytest.raises(SessionStateError):
        auth.logout()


# ---------- forced logout ----------

def test_force_logout_marks_reason(client):
    storage = {'token': 'abc'}
    auth = _session(storage, client)

    auth.force_logout()

    assert 'token' not in storage
    assert auth.end_reason == FORCED


def test_force_logout_when_logged_out_is_ignored(client):
    auth = _session({}, client)

    auth.force_logout()

    assert auth.state == UNAUTHENTICATED
    assert auth.end_reason is None


def test_401_from_client_forces_logout(api):
    api.add('GET', '/books', {'message': 'Unauthenticated.'}, status=401)
    storage = {'token': 'expired'}
    auth = _session(storage, ApiClient(API_URL))

    with pytest.raises(Unauthorized):
        auth.client.get('/books')

    assert auth.state == UNAUTHENTICATED
    assert auth.end_reason == FORCED
    assert 'token' not in storage


def test_second_401_is_harmless(api):
    api.add('GET', '/books', {}, status=401)
    api.add('GET', '/users', {}, status=401)
    auth = _session({'token': 'expired'}, ApiClient(API_URL))

    for path in ('/books', '/users'):
        with pytest.raises(Unauthorized):
            auth.client.get(path)

    assert auth.state == UNAUTHENTICATED


# ---------- observers ----------

def test_subscribers_see_every_transition(client):
    seen = []
    auth = AuthSession({}, client=client)
    auth.subscribe(seen.append)

    auth.initialize()
    auth.login('abc')
    auth.logout()

    assert seen == [UNAUTHENTICATED, AUTHENTICATED, UNAUTHENTICATED]


def test_unsubscribe_stops_notifications(client):
    seen = []
    auth = _session({}, client)
    unsubscribe = auth.subscribe(seen.append)

    unsubscribe()
    auth.login('abc')

    assert seen == []
