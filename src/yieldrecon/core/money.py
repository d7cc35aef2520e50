#!/usr/bin/env python3
"""
Money Primitive Type

Immutable USD value wrapper backed by Decimal human units.
Prevents floating-point errors and provides type-safe currency operations.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Union

from .currency import (
    USDC_DECIMALS,
    base_units_to_decimal,
    decimal_to_base_units,
    format_usd,
    quantize_dollars,
    to_decimal,
)


@dataclass(frozen=True)
class Money:
    """
    Immutable money value in dollars (USD / USDC).

    Supports both positive (inflows) and negative (outflows) amounts.
    Uses Decimal arithmetic throughout to prevent floating-point errors.

    Examples:
        >>> deposit = Money.from_base_units("40000000")
        >>> str(deposit)
        '$40.00'

        >>> fee = Money.from_dollars("0.75")
        >>> str(fee / Decimal("0.15"))
        '$5.00'

        >>> Money.from_dollars(float("nan"))
        Money(amount=Decimal('0'))
    """

    amount: Decimal

    @classmethod
    def zero(cls) -> "Money":
        """Create a zero amount."""
        return cls(amount=Decimal(0))

    @classmethod
    def from_base_units(cls, value: Union[str, int], decimals: int = USDC_DECIMALS) -> "Money":
        """
        Create Money from explorer base units.

        Args:
            value: Integer base units ("1500000" = $1.50 for 6 decimals)
            decimals: Token decimals

        Returns:
            Money object

        Raises:
            ValueError: If the value is not a non-negative integer
        """
        return cls(amount=base_units_to_decimal(value, decimals))

    @classmethod
    def from_dollars(cls, dollars: Any) -> "Money":
        """
        Create Money from a dollar amount.

        Accepts Decimal, int, float, or strings like '$12.34'. Not-a-number and
        infinite values become zero.
        """
        return cls(amount=to_decimal(dollars))

    def to_decimal(self) -> Decimal:
        """Get value as Decimal dollars."""
        return self.amount

    def to_float(self) -> float:
        """Get value as float (display and export only)."""
        return float(self.amount)

    def to_base_units(self, decimals: int = USDC_DECIMALS) -> int:
        """Get value in token base units."""
        return decimal_to_base_units(self.amount, decimals)

    def to_dollars(self) -> str:
        """Get formatted dollar string."""
        return str(self)

    def rounded(self, places: int = 2) -> "Money":
        """Return a copy rounded half-up to the given number of places."""
        return Money(amount=quantize_dollars(self.amount, places))

    def abs(self) -> "Money":
        """Return absolute value of Money."""
        return Money(amount=abs(self.amount))

    def is_zero(self) -> bool:
        """Check if the amount is exactly zero."""
        return self.amount == 0

    def is_positive(self) -> bool:
        """Check if the amount is strictly positive."""
        return self.amount > 0

    def __add__(self, other: "Money") -> "Money":
        """Add two Money objects."""
        if not isinstance(other, Money):
            return NotImplemented
        return Money(amount=self.amount + other.amount)

    def __radd__(self, other: object) -> "Money":
        """Support sum() over Money, which starts from integer 0."""
        if other == 0:
            return self
        return NotImplemented

    def __sub__(self, other: "Money") -> "Money":
        """Subtract two Money objects."""
        if not isinstance(other, Money):
            return NotImplemented
        return Money(amount=self.amount - other.amount)

    def __neg__(self) -> "Money":
        """Negate amount."""
        return Money(amount=-self.amount)

    def __mul__(self, scalar: Union[Decimal, int]) -> "Money":
        """Multiply Money by a Decimal or integer scalar."""
        if isinstance(scalar, (Money, float)):
            return NotImplemented
        return Money(amount=self.amount * to_decimal(scalar))

    __rmul__ = __mul__

    def __truediv__(self, other: Union["Money", Decimal, int]) -> Any:
        """
        Divide Money.

        Money / scalar returns Money; Money / Money returns a Decimal ratio.
        """
        if isinstance(other, Money):
            return self.amount / other.amount
        if isinstance(other, float):
            return NotImplemented
        return Money(amount=self.amount / to_decimal(other))

    def __eq__(self, other: object) -> bool:
        """Check equality."""
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount == other.amount

    def __hash__(self) -> int:
        return hash(self.amount)

    def __lt__(self, other: "Money") -> bool:
        """Less than comparison."""
        return self.amount < other.amount

    def __le__(self, other: "Money") -> bool:
        """Less than or equal comparison."""
        return self.amount <= other.amount

    def __gt__(self, other: "Money") -> bool:
        """Greater than comparison."""
        return self.amount > other.amount

    def __ge__(self, other: "Money") -> bool:
        """Greater than or equal comparison."""
        return self.amount >= other.amount

    def __str__(self) -> str:
        """Format as dollar string."""
        return format_usd(self.amount)

    def __repr__(self) -> str:
        """Repr format."""
        return f"Money(amount={self.amount!r})"
