"""
Helpers for turning API JSON values into Python values
"""
from datetime import datetime, time, timezone as dt_timezone

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime


def parse_timestamp(value):
    """
    Parse an ISO-8601 string from the API into an aware datetime

    Date-only values ("2025-01-01") become midnight UTC; naive values are
    taken to be UTC. Returns None for empty or unparseable input.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = parse_datetime(value)
            if parsed is None:
                day = parse_date(value)
                if day is None:
                    return None
                parsed = datetime.combine(day, time.min)
        except ValueError:
            return None

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def to_int(value, default=0):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def to_float(value, default=0.0):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
