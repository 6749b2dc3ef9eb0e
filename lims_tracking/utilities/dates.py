"""
Date helpers for documents whose date fields were written as datetimes by
some code paths and as ISO strings by others
"""
from datetime import datetime, time


def parse_date(value):
    """Return a datetime for a datetime or ISO date string, None otherwise"""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
    return None


def iso_or_none(value):
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else None


def end_of_day(value):
    """Last instant of the day of an ISO date string, used for inclusive date ranges"""
    parsed = parse_date(value)
    if parsed is None:
        return None
    return datetime.combine(parsed.date(), time.max)


def sort_key(value):
    """
    Sort key that tolerates missing and mixed-type dates; missing dates sort first
    """
    parsed = parse_date(value)
    if parsed is None:
        return (0, datetime.min)
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None)
    return (1, parsed)
