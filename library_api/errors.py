"""
Failure taxonomy for calls to the library API

Every failed call surfaces as exactly one of these, each carrying the
message shown to the administrator.
"""


class ApiError(Exception):
    """Base class for every classified API failure"""

    default_message = 'An error occurred'

    def __init__(self, message=None, status=None, payload=None):
        self.message = message or self.default_message
        self.status = status
        self.payload = payload
        super().__init__(self.message)


class NotFound(ApiError):
    default_message = 'The requested resource was not found. Please check the API URL.'


class Unauthorized(ApiError):
    default_message = 'Unauthorized. Please log in again.'


class Forbidden(ApiError):
    default_message = 'Access forbidden. Please check your permissions.'


class ValidationError(ApiError):
    """
    422 from the API

    ``message`` is the server's own text; ``errors`` maps field names to
    lists of messages when the API provides them.
    """
    default_message = 'Validation error. Please check your input.'

    def __init__(self, message=None, status=422, payload=None, errors=None):
        super().__init__(message, status=status, payload=payload)
        self.errors = errors or {}


class NetworkUnreachable(ApiError):
    default_message = 'No response received from server. Please check your connection.'


class UnknownApiError(ApiError):

    def __init__(self, status, message=None, payload=None):
        detail = message or 'Unexpected response'
        super().__init__(f'Error: {status} - {detail}', status=status, payload=payload)
        self.detail = detail


STATUS_ERRORS = {
    401: Unauthorized,
    403: Forbidden,
    404: NotFound,
}


def error_for_response(status, payload, reason=None):
    """
    Map a non-2xx status and its decoded body to an ApiError instance
    """
    server_message = None
    if isinstance(payload, dict):
        server_message = payload.get('message') or payload.get('error')

    if status == 422:
        errors = payload.get('errors') if isinstance(payload, dict) else None
        return ValidationError(server_message, payload=payload, errors=errors)

    error_class = STATUS_ERRORS.get(status)
    if error_class is not None:
        return error_class(status=status, payload=payload)

    return UnknownApiError(status, server_message or reason, payload=payload)
