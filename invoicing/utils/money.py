"""Decimal helpers shared by the amount engine and the services."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Union

ZERO = Decimal('0')
HUNDRED = Decimal('100')
CENT = Decimal('0.01')

# Working precision for engine arithmetic; rounding to cents happens once, at the end
ENGINE_PRECISION = 40

Number = Union[int, float, Decimal, str]


def to_decimal(value: Number, field: str = 'value') -> Decimal:
    """
    Convert user input to Decimal without going through binary floats.

    Floats are converted through their shortest repr, so 0.1 becomes
    Decimal('0.1') and not 0.1000000000000000055...

    Raises:
        ValueError: if the value is empty, not a number, NaN or infinite.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f'{field} is required')
    if isinstance(value, bool):
        raise ValueError(f'{field} must be a number')
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f'{field} must be a number, got {value!r}')
    if not result.is_finite():
        raise ValueError(f'{field} must be a finite number')
    return result


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half away from zero (commercial rounding)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(base: Decimal, rate: Decimal) -> Decimal:
    """Return rate% of base at full precision."""
    return base * rate / HUNDRED


def clamp(value: Decimal, lower: Decimal, upper: Decimal) -> Decimal:
    return max(lower, min(value, upper))


# Scale of persisted engine inputs; item and discount columns hold exactly this much
INPUT_QUANTUM = Decimal('0.000001')
RATE_QUANTUM = Decimal('0.0001')


def to_stored_scale(value: Decimal, quantum: Decimal = INPUT_QUANTUM) -> Decimal:
    """
    Round an engine input to the scale of its column (half up).

    Amounts computed from a payload must match amounts recomputed later from
    the stored rows, so inputs are cut to the stored scale before computing.
    """
    with localcontext() as ctx:
        ctx.prec = ENGINE_PRECISION
        return value.quantize(quantum, rounding=ROUND_HALF_UP)
