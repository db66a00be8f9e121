import logging

from django.conf import settings
from django.contrib import messages
from django.shortcuts import redirect, render
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from library_api.errors import ApiError, Unauthorized

from .decorators import token_required
from .forms import LoginForm

logger = logging.getLogger(__name__)


def _safe_next(request):
    next_url = request.POST.get('next') or request.GET.get('next')
    if next_url and url_has_allowed_host_and_scheme(
        next_url, allowed_hosts={request.get_host()}, require_https=request.is_secure(),
    ):
        return next_url
    return None


def login_view(request):
    """
    Exchange username and password for an API token
    """
    auth = request.auth_session

    # Already logged in
    if auth.is_authenticated:
        return redirect('librarian:dashboard')

    form = LoginForm(request.POST or None)

    if request.method == 'POST' and form.is_valid():
        credentials = {
            'username': form.cleaned_data['username'],
            'password': form.cleaned_data['password'],
        }
        try:
            payload = auth.client.post('/login', json=credentials)
        except Unauthorized:
            messages.error(request, 'Invalid username or password.')
        except ApiError as e:
            messages.error(request, e.message)
        else:
            payload = payload if isinstance(payload, dict) else {}
            token = payload.get('token')
            if not token:
                logger.warning('Login for %s returned no token', credentials['username'])
                messages.error(request, 'Login failed: the server did not issue a token.')
            else:
                request.session.cycle_key()
                auth.login(token)

                user = payload.get('user') or {}
                display_name = user.get('name') or user.get('username') or credentials['username']
                messages.success(request, f'Welcome back, {display_name}!')
                return redirect(_safe_next(request) or settings.LOGIN_REDIRECT_URL)

    context = {
        'form': form,
        'next': _safe_next(request) or '',
    }
    return render(request, 'users/login.html', context)


@require_POST
@token_required
def logout_view(request):
    """
    End the administrator session
    """
    request.auth_session.logout()
    messages.success(request, 'You have been logged out.')
    return redirect('users:login')
