#!/usr/bin/env python3
"""
Currency Conversion and Handling Utilities

Token amounts arrive from the ledger explorer as integer strings in the token's
base units (USDC uses 6 decimals: "1500000" = $1.50). All internal arithmetic
uses Decimal so conversions from base units are exact and reconciliation
identities hold without floating-point drift.

Currency Systems:
- Explorer values: integer base units as strings
- Internal calculations: Decimal human units (dollars)
- Display: dollar strings like "$12.34"

Key Principles:
- Never use floating-point arithmetic for ledger sums
- Not-a-number or infinite inputs are treated as zero, never propagated
- Comparisons between derived values use explicit tolerances
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Union

USDC_DECIMALS = 6

Numeric = Union[Decimal, int, float, str]


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a numeric value to Decimal, treating invalid input as zero.

    Args:
        value: Decimal, int, float, numeric string, or None

    Returns:
        Finite Decimal (0 for None, NaN, infinity, or unparsable input)

    Examples:
        to_decimal(12.5) -> Decimal('12.5')
        to_decimal(float('nan')) -> Decimal('0')
        to_decimal('$1,234.50') -> Decimal('1234.50')
    """
    if value is None or isinstance(value, bool):
        return Decimal(0)

    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, int):
            result = Decimal(value)
        elif isinstance(value, float):
            # repr() keeps the shortest round-tripping form (0.1 -> "0.1")
            result = Decimal(repr(value))
        else:
            clean_str = str(value).replace("$", "").replace(",", "").strip()
            if not clean_str:
                return Decimal(0)
            result = Decimal(clean_str)
    except (ValueError, TypeError, InvalidOperation):
        return Decimal(0)

    if not result.is_finite():
        return Decimal(0)
    return result


def is_not_a_number(value: Any) -> bool:
    """Check whether a value is None, NaN, or otherwise not a finite number."""
    if value is None or isinstance(value, bool):
        return True
    try:
        if isinstance(value, float):
            return value != value or value in (float("inf"), float("-inf"))
        return not Decimal(str(value)).is_finite()
    except (ValueError, TypeError, InvalidOperation):
        return True


def parse_base_units(value: Union[str, int]) -> int:
    """
    Parse an explorer integer value string.

    Args:
        value: Integer base units, as int or decimal-digit string

    Returns:
        Integer base units

    Raises:
        ValueError: If the value is not a non-negative integer
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid base unit value: {value!r}")
    if isinstance(value, int):
        units = value
    else:
        text = str(value).strip()
        if not text.isdigit():
            raise ValueError(f"Invalid base unit value: {value!r}")
        units = int(text)

    if units < 0:
        raise ValueError(f"Negative base unit value: {value!r}")
    return units


def base_units_to_decimal(value: Union[str, int], decimals: int = USDC_DECIMALS) -> Decimal:
    """
    Convert integer base units to a Decimal amount in human units.

    Args:
        value: Base units (e.g. "45000000")
        decimals: Token decimals (default: 6 for USDC)

    Returns:
        Exact Decimal amount

    Example:
        base_units_to_decimal("45000000") -> Decimal('45')
    """
    units = parse_base_units(value)
    return Decimal(units).scaleb(-decimals)


def decimal_to_base_units(amount: Numeric, decimals: int = USDC_DECIMALS) -> int:
    """
    Convert a human-unit amount to integer base units (truncating sub-unit dust).

    Example:
        decimal_to_base_units("0.75") -> 750000
    """
    return int(to_decimal(amount).scaleb(decimals))


def quantize_dollars(amount: Numeric, places: int = 2) -> Decimal:
    """Round an amount half-up to the given number of decimal places."""
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(amount).quantize(exponent, rounding=ROUND_HALF_UP)


def decimal_to_dollars_str(amount: Numeric, places: int = 2) -> str:
    """
    Format an amount as a plain dollar string without currency symbol.

    Example:
        decimal_to_dollars_str(Decimal("45.5")) -> "45.50"
    """
    return f"{quantize_dollars(amount, places):f}"


def format_usd(amount: Numeric, places: int = 2) -> str:
    """Format an amount as a dollar string with $ prefix."""
    return f"${decimal_to_dollars_str(amount, places)}"


def within_tolerance(left: Numeric, right: Numeric, tolerance: Numeric) -> bool:
    """
    Check that two amounts differ by strictly less than the tolerance.

    Args:
        left: First amount
        right: Second amount
        tolerance: Exclusive upper bound for the absolute difference

    Returns:
        True if |left - right| < tolerance
    """
    return abs(to_decimal(left) - to_decimal(right)) < to_decimal(tolerance)
