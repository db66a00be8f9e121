"""
Attach the administrator session store to every request
"""
from .session import AuthSession


class AuthSessionMiddleware:
    """
    Builds ``request.auth_session`` from the Django session

    Must run after SessionMiddleware. The store is resolved once the view is
    known, so views wrapped by ``token_required`` get their redirect requested
    up front. The API client is closed when the response is done.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.auth_session = AuthSession(request.session)
        try:
            return self.get_response(request)
        finally:
            request.auth_session.client.close()

    def process_view(self, request, view_func, view_args, view_kwargs):
        request.auth_session.initialize(requires_auth=getattr(view_func, 'requires_auth', False))
        return None
