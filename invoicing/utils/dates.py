"""Date parsing for document payloads."""
from datetime import date, datetime
from typing import Optional, Union

from invoicing.exceptions import InvalidDateError


def parse_date(value: Union[date, datetime, str, None], field: str,
               default: Optional[date] = None) -> Optional[date]:
    """
    Parse an ISO date (YYYY-MM-DD) from a payload value.

    Datetimes and ISO timestamps are truncated to their date part.
    Missing values return ``default``.

    Raises:
        InvalidDateError: if the value is present but not a valid date.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return default

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if not isinstance(value, str):
        raise InvalidDateError(field, value)

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
    except ValueError:
        raise InvalidDateError(field, value)
