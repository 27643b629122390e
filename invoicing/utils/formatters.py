"""
Formatting helpers for rendered documents.

Numbers use German conventions (1.234,56), dates DD.MM.YYYY.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union


def _group_thousands(integer_part: str) -> str:
    # Reverse, group by 3, reverse again
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    return '.'.join(groups)[::-1]


def money_de(value: Union[int, float, Decimal, str, None], currency: str = '€') -> str:
    """
    Format an amount with exactly 2 decimals and a currency sign.

    Examples:
        money_de(Decimal('1500')) -> "1.500,00 €"
        money_de(Decimal('-3.5')) -> "-3,50 €"
        money_de(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value)).quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    sign = "-" if num < 0 else ""
    integer_part, decimal_part = f"{abs(num):.2f}".split(".")
    formatted = f"{sign}{_group_thousands(integer_part)},{decimal_part}"
    return f"{formatted} {currency}" if currency else formatted


def num_de(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Format a quantity or rate, dropping insignificant decimals.

    Examples:
        num_de(2) -> "2"
        num_de(Decimal('1.500')) -> "1,5"
        num_de(Decimal('19.00')) -> "19"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    if num == 0:
        return "0"

    num_str = f"{num:f}"
    if '.' in num_str:
        integer_part, decimal_part = num_str.split('.')
        decimal_part = decimal_part.rstrip('0')
    else:
        integer_part, decimal_part = num_str, ""

    sign = ''
    if integer_part.startswith('-'):
        sign = '-'
        integer_part = integer_part[1:]

    integer_formatted = _group_thousands(integer_part)
    if decimal_part:
        return f"{sign}{integer_formatted},{decimal_part}"
    return f"{sign}{integer_formatted}"


def date_de(value: Union[date, datetime, None]) -> str:
    """
    Format a date as DD.MM.YYYY.

    Examples:
        date_de(date(2026, 1, 12)) -> "12.01.2026"
    """
    if value is None:
        return "-"

    if isinstance(value, datetime):
        value = value.date()

    if not isinstance(value, date):
        return "-"

    return value.strftime("%d.%m.%Y")


def json_decimal(value) -> Union[str, None]:
    """Decimal as a plain string for JSON bodies ("291.50"), None stays None."""
    if value is None:
        return None
    return str(value)


def json_date(value: Union[date, datetime, None]) -> Union[str, None]:
    """ISO 8601 string for JSON bodies, None stays None."""
    if value is None:
        return None
    return value.isoformat()
