"""
HTTP adapter for the library REST API

Wraps ``requests`` so that every call carries the bearer token, gets logged,
and fails with exactly one classified ApiError.
"""
import logging
import time

import requests
from django.conf import settings

from .errors import ApiError, NetworkUnreachable, Unauthorized, error_for_response

logger = logging.getLogger(__name__)


class ApiClient:
    """
    Thin client over one ``requests.Session``

    ``on_unauthorized`` is called before an Unauthorized error is raised so
    the session store can force a logout. Nothing is retried.
    """

    def __init__(self, base_url, token=None, timeout=None, http=None, on_unauthorized=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.http = http or requests.Session()
        self.http.headers.update({
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        })
        self.on_unauthorized = on_unauthorized
        self.token = None
        if token:
            self.set_token(token)

    def set_token(self, token):
        self.token = token
        self.http.headers['Authorization'] = f'Bearer {token}'

    def clear_token(self):
        self.token = None
        self.http.headers.pop('Authorization', None)

    def close(self):
        """Release the pooled connections of the underlying session"""
        self.http.close()

    def url_for(self, path):
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(self, method, path, json=None):
        """
        Perform one call and return the decoded JSON body

        Raises:
            ApiError subclass describing the failure
        """
        method = method.upper()
        url = self.url_for(path)
        logger.debug('Making request to %s %s (authenticated=%s)', method, url, self.token is not None)

        started = time.monotonic()
        try:
            response = self.http.request(method, url, json=json, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning('%s %s unreachable: %s', method, url, e)
            raise NetworkUnreachable() from e
        except requests.RequestException as e:
            logger.warning('%s %s failed before a response: %s', method, url, e)
            raise ApiError(str(e)) from e

        elapsed_ms = (time.monotonic() - started) * 1000
        payload = self._decode(response)
        logger.debug('Response received: %s %s -> %s (%.0f ms)', method, url, response.status_code, elapsed_ms)

        if response.status_code < 400:
            return payload

        error = error_for_response(response.status_code, payload, reason=response.reason)
        logger.warning(
            '%s %s -> %s classified as %s: %s',
            method, url, response.status_code, type(error).__name__, error.message,
        )

        if isinstance(error, Unauthorized) and self.on_unauthorized is not None:
            self.on_unauthorized()

        raise error

    def _decode(self, response):
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def get(self, path):
        return self.request('GET', path)

    def post(self, path, json=None):
        return self.request('POST', path, json=json)

    def put(self, path, json=None):
        return self.request('PUT', path, json=json)

    def delete(self, path):
        return self.request('DELETE', path)


def build_client(token=None, on_unauthorized=None):
    """Create an ApiClient configured from Django settings"""
    return ApiClient(
        settings.LIBRARY_API_BASE_URL,
        token=token,
        timeout=settings.LIBRARY_API_TIMEOUT,
        on_unauthorized=on_unauthorized,
    )
