"""
Money Utilities - Safe Decimal operations for cart values.

Avoids float precision issues by using Decimal throughout. Floats are
converted through their string representation, so 10.0 * 21% is
exactly 2.1 rather than 2.1000000000000001.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from numbers import Number
from typing import Union

NumberLike = Union[str, int, float, Decimal]


def to_decimal(value: Union[NumberLike, None]) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    if value is None:
        return Decimal("0")

    if isinstance(value, Decimal):
        return value

    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def parse_decimal(value: object) -> Decimal:
    """
    Strict conversion used for validation.

    Accepts ints, floats, Decimals and numeric strings. Booleans, NaN and
    infinities are rejected.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not a number: {value!r}")

    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("Not a number: empty string")
    elif not isinstance(value, Number):
        raise ValueError(f"Not a number: {value!r}")

    try:
        result = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValueError(f"Not a number: {value!r}") from e

    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def normalize_number(value: NumberLike) -> Union[int, Decimal]:
    """
    Collapse integral values to int, keep the rest as Decimal.

    Used for quantities so that 2, 2.0 and "2" all compare and serialize
    the same way.
    """
    decimal_value = to_decimal(value)
    if decimal_value == decimal_value.to_integral_value():
        return int(decimal_value)
    return decimal_value.normalize()


def multiply(value: NumberLike, factor: NumberLike) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)


def percent(value: NumberLike, percent_value: NumberLike) -> Decimal:
    """Calculate percentage of a monetary value."""
    return to_decimal(value) * to_decimal(percent_value) / Decimal(100)


def format_number(
    value: NumberLike,
    decimals: int = 2,
    decimal_point: str = ".",
    thousand_separator: str = ",",
) -> str:
    """
    Format a number with grouped thousands.

    Rounds half away from zero, e.g.
    format_number(6000, 2, ",", ".") == "6.000,00"
    format_number(1234.5, 0) == "1,235"

    Args:
        value: Value to format
        decimals: Number of decimal places
        decimal_point: Separator between integer and fraction
        thousand_separator: Separator between groups of three digits

    Returns:
        Formatted string
    """
    decimals = max(int(decimals), 0)
    precision = Decimal(1).scaleb(-decimals)
    rounded = to_decimal(value).quantize(precision, rounding=ROUND_HALF_UP)

    sign = "-" if rounded < 0 else ""
    integer_part, _, fraction = f"{abs(rounded):f}".partition(".")
    grouped = f"{int(integer_part):,}".replace(",", thousand_separator)

    if decimals == 0:
        return f"{sign}{grouped}"
    return f"{sign}{grouped}{decimal_point}{fraction}"


def to_json_number(value: NumberLike) -> Union[int, float]:
    """
    Convert a Decimal for JSON serialization.

    Integral values become ints so 10.00 is rendered as 10.
    """
    decimal_value = to_decimal(value)
    if decimal_value == decimal_value.to_integral_value():
        return int(decimal_value)
    return float(decimal_value)
