"""
Discount clauses.

A discount is one of three variants: ``Percentage(value)`` of a base,
``Fixed(value)`` currency amount, or ``NoDiscount``. Each variant resolves
itself against a base amount, so there is no string dispatch at resolution
time. Payloads and persisted rows carry the ``(type, value)`` pair; conversion
happens only in ``discount_from_payload`` / ``discount_to_columns``.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple, Union

from invoicing.exceptions import InvalidDiscountError
from invoicing.utils.money import HUNDRED, ZERO, percent_of, to_decimal


class DiscountType(str, enum.Enum):
    """Persisted discount type tags."""
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class Percentage:
    """value% of the base it applies to (0-100)."""

    value: Decimal

    def __post_init__(self) -> None:
        value = _coerce(self.value)
        if value < ZERO or value > HUNDRED:
            raise InvalidDiscountError(f'Percentage discount must be between 0 and 100, got {value}')
        object.__setattr__(self, 'value', value)

    @property
    def type(self) -> DiscountType:
        return DiscountType.PERCENTAGE

    def amount_for(self, base: Decimal) -> Decimal:
        return percent_of(base, self.value)


@dataclass(frozen=True)
class Fixed:
    """A literal currency amount."""

    value: Decimal

    def __post_init__(self) -> None:
        value = _coerce(self.value)
        if value < ZERO:
            raise InvalidDiscountError(f'Fixed discount cannot be negative, got {value}')
        object.__setattr__(self, 'value', value)

    @property
    def type(self) -> DiscountType:
        return DiscountType.FIXED

    def amount_for(self, base: Decimal) -> Decimal:
        return self.value


@dataclass(frozen=True)
class NoDiscount:
    """Absent discount; always resolves to zero."""

    @property
    def type(self) -> None:
        return None

    @property
    def value(self) -> None:
        return None

    def amount_for(self, base: Decimal) -> Decimal:
        return ZERO


NO_DISCOUNT = NoDiscount()

DiscountClause = Union[Percentage, Fixed, NoDiscount]


def _coerce(value) -> Decimal:
    try:
        return to_decimal(value, 'discount value')
    except ValueError as e:
        raise InvalidDiscountError(str(e))


def discount_from_payload(discount_type, discount_value) -> DiscountClause:
    """
    Build a clause from a ``(type, value)`` pair as sent by clients.

    A missing type or a missing/zero value means no discount. Unknown type
    strings are rejected instead of silently ignored.

    Raises:
        InvalidDiscountError: unknown type, non-numeric or out-of-range value.
    """
    if discount_type is None or (isinstance(discount_type, str) and not discount_type.strip()):
        return NO_DISCOUNT
    if discount_value is None or (isinstance(discount_value, str) and not discount_value.strip()):
        return NO_DISCOUNT

    value = _coerce(discount_value)
    if value == ZERO:
        return NO_DISCOUNT

    try:
        kind = DiscountType(str(discount_type).strip().lower())
    except ValueError:
        raise InvalidDiscountError(f'Unknown discount type {discount_type!r}')

    if kind is DiscountType.PERCENTAGE:
        return Percentage(value)
    return Fixed(value)


def discount_to_columns(clause: Optional[DiscountClause]) -> Tuple[Optional[str], Optional[Decimal]]:
    """Return the ``(discount_type, discount_value)`` pair stored on rows."""
    if clause is None or isinstance(clause, NoDiscount):
        return None, None
    return clause.type.value, clause.value
