"""
Route guard for console pages that need a logged-in administrator
"""
from functools import wraps
from urllib.parse import urlencode

from django.conf import settings
from django.contrib import messages
from django.shortcuts import redirect, render, resolve_url

from .session import FORCED, UNAUTHENTICATED


def redirect_to_login(request):
    login_url = resolve_url(settings.LOGIN_URL)
    return redirect(f"{login_url}?{urlencode({'next': request.get_full_path()})}")


def token_required(view_func):
    """
    Guard a view on the session store

    Still loading: render the waiting page and fetch nothing.
    Unauthenticated: redirect to login.
    Authenticated: run the view, and if any API call inside it gets a 401
    (a forced logout) the response is swapped for a redirect to login.

    The view is marked ``requires_auth`` so the session middleware requests
    the login redirect while resolving the store.
    """
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        auth = request.auth_session

        if auth.is_loading:
            return render(request, 'users/loading.html')

        if auth.redirect_requested or not auth.is_authenticated:
            return redirect_to_login(request)

        ended = []

        def _on_change(state):
            if state == UNAUTHENTICATED and auth.end_reason == FORCED:
                ended.append(state)

        unsubscribe = auth.subscribe(_on_change)
        try:
            response = view_func(request, *args, **kwargs)
        finally:
            unsubscribe()

        if ended:
            # Every controller that hit the 401 queued its own error; collapse
            # them into one notice.
            for _ in messages.get_messages(request):
                pass
            messages.warning(request, 'Your session has expired. Please log in again.')
            return redirect_to_login(request)

        return response

    _wrapped.requires_auth = True
    return _wrapped
