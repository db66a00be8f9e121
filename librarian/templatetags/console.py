"""
Template helpers for the list pages
"""
from django import template
from django.utils.http import urlencode

from librarian.listing import ASCENDING

register = template.Library()


def _query_with(request, **changes):
    params = request.GET.copy()
    for key, value in changes.items():
        if value is None:
            params.pop(key, None)
        else:
            params[key] = value
    return f'?{params.urlencode()}' if params else '?'


@register.simple_tag(takes_context=True)
def sort_url(context, field):
    """Link for a column header: same field toggles, new field starts ascending"""
    controller = context['controller']
    return _query_with(
        context['request'], sort=field, dir=controller.sort_direction_for(field), page=None,
    )


@register.simple_tag(takes_context=True)
def sort_arrow(context, field):
    controller = context['controller']
    if controller.sort_key != field:
        return ''
    return '↑' if controller.sort_direction == ASCENDING else '↓'


@register.simple_tag(takes_context=True)
def page_url(context, number):
    return _query_with(context['request'], page=number)


@register.filter
def status_class(status):
    return {
        'Returned': 'success',
        'Overdue': 'danger',
        'Active': 'info',
    }.get(status, 'secondary')


@register.simple_tag
def query_string(**params):
    cleaned = {key: value for key, value in params.items() if value not in (None, '')}
    return f'?{urlencode(cleaned)}' if cleaned else ''
