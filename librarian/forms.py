"""
Shared form helpers
"""


def add_api_errors(form, field_errors):
    """
    Attach per-field errors from a 422 response to a bound form

    Errors for fields the form does not have go to the non-field errors.
    """
    for field, errors in (field_errors or {}).items():
        if isinstance(errors, str):
            errors = [errors]
        target = field if field in form.fields else None
        for error in errors:
            form.add_error(target, error)
