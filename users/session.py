"""
Session store for the administrator's bearer token

The token is the only persisted piece of state. It lives in the Django
session under ``settings.LIBRARY_API_TOKEN_KEY``; everything else
(authenticated, loading) is derived from it.
"""
import logging
import threading

from django.conf import settings

from library_api.client import build_client

logger = logging.getLogger(__name__)


LOADING = 'loading'
UNAUTHENTICATED = 'unauthenticated'
AUTHENTICATED = 'authenticated'

# Why a session ended
USER_LOGOUT = 'logout'
FORCED = 'forced'

TRANSITIONS = {
    LOADING: {UNAUTHENTICATED, AUTHENTICATED},
    UNAUTHENTICATED: {AUTHENTICATED},
    AUTHENTICATED: {UNAUTHENTICATED},
}


class SessionStateError(Exception):
    """Raised on a transition the session state machine does not allow"""


class AuthSession:
    """
    Single writer for the token

    ``login``, ``logout`` and ``force_logout`` are the only ways to change
    it. Readers either check ``state`` or register a listener with
    ``subscribe``.
    """

    def __init__(self, storage, client=None):
        self.storage = storage
        self.client = client or build_client()
        self.client.on_unauthorized = self.force_logout
        self.state = LOADING
        self.redirect_requested = False
        self.end_reason = None
        self._listeners = []
        self._lock = threading.RLock()

    # ---------- derived flags ----------

    @property
    def token(self):
        return self.storage.get(settings.LIBRARY_API_TOKEN_KEY)

    @property
    def is_loading(self):
        return self.state == LOADING

    @property
    def is_authenticated(self):
        return self.state == AUTHENTICATED

    # ---------- transitions ----------

    def initialize(self, requires_auth=False):
        """
        Resolve the loading state from the persisted token
        """
        if not self.is_loading:
            return self.state

        token = self.token
        if token:
            self.client.set_token(token)
            self._transition(AUTHENTICATED)
        else:
            self._transition(UNAUTHENTICATED)
            if requires_auth:
                self.redirect_requested = True
        return self.state

    def login(self, token):
        if not token:
            raise ValueError('login() needs a non-empty token')
        if self.is_loading:
            raise SessionStateError('login() before the session was initialized')
        if self.is_authenticated:
            raise SessionStateError('login() while already logged in; log out first')

        self.storage[settings.LIBRARY_API_TOKEN_KEY] = token
        self.client.set_token(token)
        self.redirect_requested = False
        self.end_reason = None
        self._transition(AUTHENTICATED)
        logger.info('Administrator logged in')

    def logout(self):
        with self._lock:
            self._end(reason=USER_LOGOUT)

    def force_logout(self):
        """
        Called by the API client when a request comes back 401

        A rejected login or a second 401 from a concurrent load arrives while
        already unauthenticated and changes nothing.
        """
        with self._lock:
            if self.state != AUTHENTICATED:
                return
            self._end(reason=FORCED)

    def _end(self, reason):
        if self.state != AUTHENTICATED:
            raise SessionStateError(f'{reason} logout while {self.state}')

        self.storage.pop(settings.LIBRARY_API_TOKEN_KEY, None)
        self.client.clear_token()
        self.redirect_requested = True
        self.end_reason = reason
        self._transition(UNAUTHENTICATED)
        logger.info('Administrator session ended (%s)', reason)

    def _transition(self, new_state):
        if new_state not in TRANSITIONS[self.state]:
            raise SessionStateError(f'{self.state} -> {new_state} is not allowed')
        self.state = new_state
        for listener in list(self._listeners):
            listener(new_state)

    # ---------- observers ----------

    def subscribe(self, listener):
        """
        Call ``listener(state)`` after every transition

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
