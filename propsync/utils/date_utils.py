from datetime import date, datetime
import logging

from dateutil import parser as date_parser

log = logging.getLogger(__name__)

def to_date(value) -> date | None:
    """
    Normalizes a stored date value to a `date`.
    Firestore returns timestamps as datetime subclasses; older records hold ISO strings.
    Returns None for empty values.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date_parser.isoparse(value.strip()).date()
        except ValueError:
            log.warning(f"Could not parse date '{value}'")
            raise
    raise TypeError(f"Unsupported date value of type {type(value).__name__}")

def format_date(value: date | None) -> str | None:
    """Formats a date the way rent records store it (yyyy-MM-dd)."""
    if value is None:
        return None
    return value.strftime('%Y-%m-%d')
